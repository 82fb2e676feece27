"""
Unit tests for blog endpoints.

Tests:
- Create/update with strict slug uniqueness
- Public listing, pagination and visibility
- Likes and comments, including comment delete authorization
- Weak author references
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from we3vision.crud import blog as blog_crud
from we3vision.crud import user as user_crud
from we3vision.models.blog import Blog, BlogLike, BlogStatus
from we3vision.models.user import UserRole
from conftest import headers_for
from main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def create_blog(client, admin_headers, sample_blog_data):
    """Factory posting blogs as the admin; returns the response data."""
    def _create(**overrides):
        payload = {**sample_blog_data, **overrides}
        response = client.post("/api/blog/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.json()
        return response.json()["data"]

    return _create


class TestBlogCreation:

    def test_create_blog(self, client, admin_headers, admin_user, sample_blog_data):
        response = client.post("/api/blog/", json=sample_blog_data, headers=admin_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["slug"] == "building-immersive-worlds-in-the-metaverse"
        assert data["author"]["id"] == admin_user.id
        assert data["featuredImage"] == "/uploads/default-blog-image.jpg"
        assert data["likeCount"] == 0
        assert data["commentCount"] == 0
        assert data["tags"] == ["metaverse", "3d"]

    def test_non_admin_cannot_create(self, client, auth_headers, sample_blog_data):
        response = client.post("/api/blog/", json=sample_blog_data, headers=auth_headers)

        assert response.status_code == 403

    def test_duplicate_title_conflicts(self, client, admin_headers, create_blog, sample_blog_data):
        create_blog()

        response = client.post(
            "/api/blog/",
            json={**sample_blog_data, "title": "Building  Immersive Worlds in the METAVERSE!"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        body = response.json()
        assert body["message"] == blog_crud.DUPLICATE_SLUG_MESSAGE
        assert body["keyValue"] == {"slug": "building-immersive-worlds-in-the-metaverse"}

    def test_concurrent_duplicate_surfaces_as_conflict(
        self, client, admin_headers, sample_blog_data, db_session, monkeypatch
    ):
        """A slug taken between the availability check and the commit is still a 409."""
        real_commit = db_session.commit

        def racing_commit():
            monkeypatch.setattr(db_session, "commit", real_commit)
            raise IntegrityError("INSERT INTO blogs", {}, Exception("UNIQUE constraint failed: blogs.slug"))

        monkeypatch.setattr(db_session, "commit", racing_commit)

        response = client.post("/api/blog/", json=sample_blog_data, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["keyValue"] == {"slug": "building-immersive-worlds-in-the-metaverse"}
        assert db_session.query(Blog).count() == 0

    def test_other_integrity_errors_are_not_slug_conflicts(
        self, client, admin_headers, sample_blog_data, db_session, monkeypatch
    ):
        real_commit = db_session.commit

        def failing_commit():
            monkeypatch.setattr(db_session, "commit", real_commit)
            raise IntegrityError("INSERT INTO blogs", {}, Exception("FOREIGN KEY constraint failed"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with TestClient(app, raise_server_exceptions=False) as raw_client:
            response = raw_client.post("/api/blog/", json=sample_blog_data, headers=admin_headers)

        assert response.status_code == 500
        assert response.json()["message"] == "Server error"
        assert "keyValue" not in response.json()
        assert db_session.query(Blog).count() == 0

    def test_validation_errors(self, client, admin_headers):
        response = client.post(
            "/api/blog/",
            json={"title": "Hey", "content": "short", "excerpt": "tiny", "category": "Cooking"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["title", "content", "excerpt", "category"]

    def test_multipart_create_with_image(self, client, admin_headers, sample_blog_data, storage):
        form = {
            "title": sample_blog_data["title"],
            "content": sample_blog_data["content"],
            "excerpt": sample_blog_data["excerpt"],
            "category": "Metaverse",
            "status": "published",
            "tags": "metaverse, 3d",
        }
        response = client.post(
            "/api/blog/",
            data=form,
            files={"image": ("cover.PNG", PNG_BYTES, "image/png")},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["tags"] == ["metaverse", "3d"]
        assert data["featuredImage"].startswith("/uploads/image-")
        assert data["featuredImage"].endswith(".png")
        assert storage.list_files() == [data["featuredImage"].rsplit("/", 1)[1]]

    def test_multipart_rejects_non_image(self, client, admin_headers, sample_blog_data, storage):
        response = client.post(
            "/api/blog/",
            data={k: v for k, v in sample_blog_data.items() if k != "tags"},
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Not an image! Please upload an image."
        assert storage.list_files() == []

    def test_conflict_removes_stored_image(self, client, admin_headers, create_blog, sample_blog_data, storage):
        create_blog()

        response = client.post(
            "/api/blog/",
            data={k: v for k, v in sample_blog_data.items() if k != "tags"},
            files={"image": ("cover.png", PNG_BYTES, "image/png")},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert storage.list_files() == []


class TestBlogUpdate:

    def test_partial_update(self, client, admin_headers, create_blog):
        blog = create_blog()

        response = client.put(f"/api/blog/{blog['id']}", json={"isFeatured": True}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["isFeatured"] is True
        assert data["title"] == blog["title"]
        assert data["slug"] == blog["slug"]

    def test_new_title_rederives_slug(self, client, admin_headers, create_blog):
        blog = create_blog()

        response = client.put(
            f"/api/blog/{blog['id']}", json={"title": "A Fresh Perspective"}, headers=admin_headers
        )

        assert response.json()["data"]["slug"] == "a-fresh-perspective"

    def test_title_taken_by_other_blog(self, client, admin_headers, create_blog):
        create_blog(title="First Post Title")
        second = create_blog(title="Second Post Title")

        response = client.put(
            f"/api/blog/{second['id']}", json={"title": "First Post Title"}, headers=admin_headers
        )

        assert response.status_code == 409

    def test_update_missing_blog(self, client, admin_headers):
        response = client.put("/api/blog/999", json={"isFeatured": True}, headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Blog not found"

    def test_delete_blog(self, client, admin_headers, create_blog, db_session):
        blog = create_blog()

        response = client.delete(f"/api/blog/{blog['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Blog deleted successfully"
        assert db_session.query(Blog).count() == 0


class TestBlogListing:

    def test_only_published_visible(self, client, create_blog):
        create_blog(title="Published Post Title")
        draft = create_blog(title="Draft Post Title", status="draft")

        listing = client.get("/api/blog/").json()
        assert [b["title"] for b in listing["data"]] == ["Published Post Title"]
        assert "content" not in listing["data"][0]

        response = client.get(f"/api/blog/{draft['slug']}")
        assert response.status_code == 404

    def test_pagination_envelope(self, client, create_blog):
        for i in range(3):
            create_blog(title=f"Numbered Post {i}")

        body = client.get("/api/blog/?page=2&limit=2").json()

        assert body["status"] == "success"
        assert len(body["data"]) == 1
        assert body["pagination"] == {
            "currentPage": 2,
            "totalPages": 2,
            "total": 3,
            "hasNext": False,
            "hasPrev": True,
        }

    def test_newest_first(self, client, create_blog):
        create_blog(title="Older Post Title")
        create_blog(title="Newer Post Title")

        titles = [b["title"] for b in client.get("/api/blog/").json()["data"]]

        assert titles == ["Newer Post Title", "Older Post Title"]

    def test_filters(self, client, create_blog):
        create_blog(title="Web Performance Tips", category="Web", tags=["performance"])
        create_blog(title="Designing for VR", category="AR/VR", tags=["headsets"])

        by_category = client.get("/api/blog/", params={"category": "AR/VR"}).json()["data"]
        by_search = client.get("/api/blog/", params={"search": "PERFORMANCE"}).json()["data"]
        by_tag = client.get("/api/blog/", params={"search": "headsets"}).json()["data"]

        assert [b["title"] for b in by_category] == ["Designing for VR"]
        assert [b["title"] for b in by_search] == ["Web Performance Tips"]
        assert [b["title"] for b in by_tag] == ["Designing for VR"]

    def test_invalid_category_filter(self, client):
        response = client.get("/api/blog/", params={"category": "Cooking"})

        assert response.status_code == 400

    def test_featured(self, client, create_blog):
        create_blog(title="Featured Post Title", isFeatured=True)
        create_blog(title="Plain Post Title")

        data = client.get("/api/blog/featured").json()["data"]

        assert [b["title"] for b in data] == ["Featured Post Title"]

    def test_admin_sees_every_status(self, client, admin_headers, create_blog):
        create_blog(title="Published Post Title")
        create_blog(title="Draft Post Title", status="draft")
        create_blog(title="Archived Post Title", status="archived")

        body = client.get("/api/blog/admin/all", headers=admin_headers).json()

        assert body["pagination"]["total"] == 3

    def test_view_counted(self, client, create_blog):
        blog = create_blog()

        client.get(f"/api/blog/{blog['slug']}")
        data = client.get(f"/api/blog/{blog['slug']}").json()["data"]

        assert data["views"] == 2

    def test_view_increment_is_atomic(self, create_blog, db_session):
        """Views written by another request since this one loaded the row are not overwritten."""
        blog = db_session.get(Blog, create_blog()["id"])
        assert blog.views == 0

        db_session.query(Blog).filter(Blog.id == blog.id).update({Blog.views: 5}, synchronize_session=False)
        assert blog.views == 0

        blog_crud.increment_views(db_session, blog)

        assert blog.views == 6


class TestLikes:

    def test_toggle_like(self, client, create_blog, regular_user, auth_headers):
        blog = create_blog()

        liked = client.post(f"/api/blog/{blog['id']}/like", headers=auth_headers).json()["data"]
        assert liked == {"likes": [regular_user.id], "likeCount": 1, "isLiked": True}

        unliked = client.post(f"/api/blog/{blog['id']}/like", headers=auth_headers).json()["data"]
        assert unliked == {"likes": [], "likeCount": 0, "isLiked": False}

    def test_concurrent_duplicate_like_is_conflict(
        self, client, create_blog, regular_user, auth_headers, db_session, monkeypatch
    ):
        """A like inserted by a parallel request between the check and the commit is a 409."""
        blog = create_blog()
        real_commit = db_session.commit

        def racing_commit():
            monkeypatch.setattr(db_session, "commit", real_commit)
            raise IntegrityError("INSERT INTO blog_likes", {}, Exception("UNIQUE constraint failed"))

        monkeypatch.setattr(db_session, "commit", racing_commit)

        response = client.post(f"/api/blog/{blog['id']}/like", headers=auth_headers)

        assert response.status_code == 409
        body = response.json()
        assert body["message"] == blog_crud.ALREADY_LIKED_MESSAGE
        assert body["keyValue"] == {"user": regular_user.id}
        assert db_session.query(BlogLike).count() == 0

    def test_like_requires_auth(self, client, create_blog):
        blog = create_blog()

        response = client.post(f"/api/blog/{blog['id']}/like")

        assert response.status_code == 401

    def test_like_missing_blog(self, client, auth_headers):
        response = client.post("/api/blog/999/like", headers=auth_headers)

        assert response.status_code == 404


class TestComments:

    @pytest.fixture
    def blog_with_comment(self, client, create_blog, auth_headers):
        blog = create_blog()
        response = client.post(
            f"/api/blog/{blog['id']}/comment", json={"comment": "  Great read!  "}, headers=auth_headers
        )
        assert response.status_code == 201
        comments = response.json()["data"]
        return blog, comments[0]

    def test_add_comment(self, blog_with_comment, regular_user):
        blog, comment = blog_with_comment

        assert comment["comment"] == "Great read!"
        assert comment["user"]["id"] == regular_user.id
        assert comment["user"]["name"] == "Regular Reader"

    def test_empty_comment_rejected(self, client, create_blog, auth_headers):
        blog = create_blog()

        response = client.post(f"/api/blog/{blog['id']}/comment", json={"comment": "   "}, headers=auth_headers)

        assert response.status_code == 400

    def test_author_can_delete(self, client, blog_with_comment, auth_headers):
        blog, comment = blog_with_comment

        response = client.delete(f"/api/blog/{blog['id']}/comment/{comment['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_admin_can_delete(self, client, blog_with_comment, make_user):
        blog, comment = blog_with_comment
        other_admin = make_user(role=UserRole.ADMIN)

        response = client.delete(
            f"/api/blog/{blog['id']}/comment/{comment['id']}", headers=headers_for(other_admin)
        )

        assert response.status_code == 200

    def test_blog_owner_can_delete(self, client, blog_with_comment, admin_user, db_session):
        blog, comment = blog_with_comment
        # The owner keeps the right even without the admin role
        user_crud.set_role(db_session, admin_user, UserRole.USER)

        response = client.delete(
            f"/api/blog/{blog['id']}/comment/{comment['id']}", headers=headers_for(admin_user)
        )

        assert response.status_code == 200

    def test_stranger_cannot_delete(self, client, blog_with_comment, make_user):
        blog, comment = blog_with_comment
        stranger = make_user()

        response = client.delete(
            f"/api/blog/{blog['id']}/comment/{comment['id']}", headers=headers_for(stranger)
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to delete this comment"

    def test_missing_comment_is_404_before_403(self, client, blog_with_comment, make_user):
        blog, comment = blog_with_comment
        stranger = make_user()

        response = client.delete(f"/api/blog/{blog['id']}/comment/9999", headers=headers_for(stranger))

        assert response.status_code == 404
        assert response.json()["message"] == "Blog or comment not found"

    def test_comment_on_other_blog_is_404(self, client, blog_with_comment, create_blog, auth_headers):
        _, comment = blog_with_comment
        other = create_blog(title="Another Post Title")

        response = client.delete(f"/api/blog/{other['id']}/comment/{comment['id']}", headers=auth_headers)

        assert response.status_code == 404

    def test_malformed_id_is_400(self, client, blog_with_comment, auth_headers):
        blog, _ = blog_with_comment

        response = client.delete(f"/api/blog/{blog['id']}/comment/not-an-id", headers=auth_headers)

        assert response.status_code == 400


class TestWeakAuthorReference:

    def test_deleting_user_keeps_content(self, client, create_blog, regular_user, auth_headers, admin_user, db_session):
        blog = create_blog()
        client.post(f"/api/blog/{blog['id']}/comment", json={"comment": "Nice!"}, headers=auth_headers)

        db_session.delete(admin_user)
        db_session.delete(regular_user)
        db_session.commit()
        db_session.expire_all()

        data = client.get(f"/api/blog/{blog['slug']}").json()["data"]

        assert data["author"] is None
        assert data["comments"][0]["user"] is None
        assert data["comments"][0]["comment"] == "Nice!"
        assert db_session.query(Blog).filter(Blog.status == BlogStatus.PUBLISHED).count() == 1
