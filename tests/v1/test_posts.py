# tests/v1/test_posts.py
"""Tests for post-related endpoints."""

import json

from fastapi import status

from berth_board.utils.ids import new_post_id


def _create(client, *files: tuple[str, bytes], **form):
    form.setdefault("title", "Hatch cover damaged")
    return client.post(
        "/api/v1/posts/",
        data=form,
        files=[("files", (name, content, "image/jpeg")) for name, content in files],
    )


def test_create_post_with_attachments(client, read_reference) -> None:
    """Uploaded files become attachments in submission order."""
    response = _create(
        client,
        ("a.jpg", b"first"),
        ("b.png", b"second"),
        vessel_code="HMMA",
        bay="12",
        is_hold="false",
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["title"] == "Hatch cover damaged"
    assert data["vessel_code"] == "HMMA"
    assert data["is_hold"] is False
    assert data["is_ld"] is True
    assert len(data["attachments"]) == 2
    first, second = data["attachments"]
    assert first.startswith(f"dbFiles/{data['id']}/1-") and first.endswith(".jpg")
    assert second.startswith(f"dbFiles/{data['id']}/2-") and second.endswith(".png")
    assert first.split("-")[1].split(".")[0] == second.split("-")[1].split(".")[0]
    assert read_reference(first) == b"first"


def test_create_post_without_files(client) -> None:
    response = _create(client)

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["attachments"] == []


def test_get_specific_post(client) -> None:
    created = _create(client, ("a.jpg", b"x")).json()

    response = client.get(f"/api/v1/posts/{created['id']}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == created


def test_get_nonexistent_post(client) -> None:
    response = client.get(f"/api/v1/posts/{new_post_id()}")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert "Post not found" in response.json()["detail"]


def test_update_post_reorders_and_fills(client, read_reference) -> None:
    created = _create(client, ("a.jpg", b"a"), ("b.jpg", b"b")).json()
    first, second = created["attachments"]

    response = client.put(
        f"/api/v1/posts/{created['id']}",
        data={
            "title": "Hatch cover repaired",
            "changed_attachments": json.dumps([{"index": 1, "reference": first}]),
            "deleted_attachments": json.dumps([second]),
        },
        files=[("files", ("c.png", b"c", "image/png"))],
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["title"] == "Hatch cover repaired"
    assert [read_reference(r) for r in data["attachments"]] == [b"c", b"a"]


def test_update_without_files_collapses_gaps(client) -> None:
    created = _create(client, ("a.jpg", b"a")).json()

    response = client.put(
        f"/api/v1/posts/{created['id']}",
        data={
            "changed_attachments": json.dumps(
                [{"index": 2, "reference": created["attachments"][0]}]
            )
        },
    )

    assert response.status_code == status.HTTP_200_OK
    attachments = response.json()["attachments"]
    assert len(attachments) == 1
    assert attachments[0].split("/")[-1].startswith("1-")


def test_update_rejects_malformed_instructions(client) -> None:
    created = _create(client, ("a.jpg", b"a")).json()

    bad_json = client.put(
        f"/api/v1/posts/{created['id']}", data={"changed_attachments": "[{not json"}
    )
    negative = client.put(
        f"/api/v1/posts/{created['id']}",
        data={
            "changed_attachments": json.dumps(
                [{"index": -1, "reference": created["attachments"][0]}]
            )
        },
    )
    conflicting = client.put(
        f"/api/v1/posts/{created['id']}",
        data={
            "changed_attachments": json.dumps(
                [{"index": 0, "reference": created["attachments"][0]}]
            ),
            "deleted_attachments": json.dumps(created["attachments"]),
        },
    )

    assert bad_json.status_code == status.HTTP_400_BAD_REQUEST
    assert negative.status_code == status.HTTP_400_BAD_REQUEST
    assert conflicting.status_code == status.HTTP_400_BAD_REQUEST
    assert client.get(f"/api/v1/posts/{created['id']}").json() == created


def test_update_nonexistent_post(client) -> None:
    response = client.put(f"/api/v1/posts/{new_post_id()}", data={"title": "x"})

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_list_posts_search_and_pages(client) -> None:
    hatch = _create(client, title="Broken HATCH cover").json()
    _create(client, title="Reefer alarm")

    searched = client.get("/api/v1/posts/", params={"search": "hatch"})
    first_page = client.get("/api/v1/posts/", params={"page": -1})
    page_zero = client.get("/api/v1/posts/", params={"page": 0})
    default = client.get("/api/v1/posts/")

    assert searched.status_code == status.HTTP_200_OK
    assert [post["id"] for post in searched.json()["posts"]] == [hatch["id"]]
    assert len(first_page.json()["posts"]) == 2
    assert first_page.json() == page_zero.json() == default.json()


def test_delete_post_removes_directory(client, layout) -> None:
    created = _create(client, ("a.jpg", b"a")).json()
    assert layout.post_directory(created["id"]).is_dir()

    response = client.delete(f"/api/v1/posts/{created['id']}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == created["id"]
    assert not layout.post_directory(created["id"]).exists()
    assert client.get(f"/api/v1/posts/{created['id']}").status_code == status.HTTP_404_NOT_FOUND


def test_delete_nonexistent_post(client) -> None:
    response = client.delete(f"/api/v1/posts/{new_post_id()}")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_attachment_reference_is_served(client) -> None:
    created = _create(client, ("a.jpg", b"image-bytes")).json()

    response = client.get(f"/{created['attachments'][0]}")

    assert response.status_code == status.HTTP_200_OK
    assert response.content == b"image-bytes"
