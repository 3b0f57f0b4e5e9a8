import pytest

from conftest import API


@pytest.fixture
def blog(client, seller):
    _, headers = seller
    res = client.post(
        f"{API}/blogs",
        data={
            "title": "Preparing your home",
            "subtitle": "A checklist",
            "content": " ".join(["word"] * 450),
            "tags": '["adoption", "tips"]',
        },
        files={"image": ("cover.jpg", b"jpeg", "image/jpeg")},
        headers=headers,
    )
    assert res.status_code == 201, res.text
    return res.json()


def test_create_blog(blog, seller, upload_dir):
    user, _ = seller
    assert blog["author"]["id"] == user["id"]
    assert blog["tags"] == ["adoption", "tips"]
    assert blog["readTime"] == 3
    assert blog["likes"] == [] and blog["comments"] == []
    assert (upload_dir / "blogs" / blog["featuredImage"]).exists()


def test_blog_requires_title_and_content(client, buyer):
    _, headers = buyer
    res = client.post(f"{API}/blogs", data={"title": "Only a title"}, headers=headers)
    assert res.status_code == 400
    assert res.json()["details"]["fields"] == ["content"]


def test_comma_separated_tags(client, buyer):
    _, headers = buyer
    res = client.post(f"{API}/blogs", data={"title": "t", "content": "c", "tags": "cats, dogs,"}, headers=headers)
    assert res.json()["tags"] == ["cats", "dogs"]


def test_list_get_and_mine(client, blog, seller, buyer):
    _, seller_headers = seller
    _, buyer_headers = buyer
    assert [b["id"] for b in client.get(f"{API}/blogs").json()] == [blog["id"]]
    assert client.get(f"{API}/blogs/{blog['id']}").json()["title"] == "Preparing your home"
    assert [b["id"] for b in client.get(f"{API}/blogs/user/me", headers=seller_headers).json()] == [blog["id"]]
    assert client.get(f"{API}/blogs/user/me", headers=buyer_headers).json() == []


def test_only_author_updates_and_image_is_replaced(client, blog, seller, buyer, upload_dir):
    _, seller_headers = seller
    _, buyer_headers = buyer
    url = f"{API}/blogs/{blog['id']}"
    assert client.put(url, data={"title": "Hijacked"}, headers=buyer_headers).status_code == 403

    res = client.put(
        url,
        data={"title": "Updated", "content": "short"},
        files={"image": ("new.png", b"png", "image/png")},
        headers=seller_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["title"] == "Updated"
    assert body["readTime"] == 1
    assert not (upload_dir / "blogs" / blog["featuredImage"]).exists()
    assert (upload_dir / "blogs" / body["featuredImage"]).exists()


def test_like_toggles(client, blog, buyer):
    user, headers = buyer
    url = f"{API}/blogs/{blog['id']}/like"
    assert client.post(url, headers=headers).json() == [user["id"]]
    assert client.post(url, headers=headers).json() == []


def test_comments_newest_first(client, blog, buyer, seller):
    _, buyer_headers = buyer
    _, seller_headers = seller
    url = f"{API}/blogs/{blog['id']}/comments"
    client.post(url, json={"content": "First!"}, headers=buyer_headers)
    res = client.post(url, json={"content": "Thanks for reading"}, headers=seller_headers)
    assert [c["content"] for c in res.json()] == ["Thanks for reading", "First!"]
    assert client.post(url, json={"content": ""}, headers=buyer_headers).status_code == 400

    detail = client.get(f"{API}/blogs/{blog['id']}").json()
    assert [c["content"] for c in detail["comments"]] == ["Thanks for reading", "First!"]


def test_delete_blog(client, blog, seller, buyer, upload_dir):
    _, seller_headers = seller
    _, buyer_headers = buyer
    client.post(f"{API}/blogs/{blog['id']}/like", headers=buyer_headers)
    client.post(f"{API}/blogs/{blog['id']}/comments", json={"content": "nice"}, headers=buyer_headers)

    assert client.delete(f"{API}/blogs/{blog['id']}", headers=buyer_headers).status_code == 403
    assert client.delete(f"{API}/blogs/{blog['id']}", headers=seller_headers).status_code == 200
    assert client.get(f"{API}/blogs/{blog['id']}").status_code == 404
    assert not (upload_dir / "blogs" / blog["featuredImage"]).exists()
