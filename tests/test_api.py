"""
HTTP-level tests against the FastAPI app with the database swapped for an in-memory one.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from cricbook.auth.utils import create_access_token, create_refresh_token
from cricbook.database import get_db
from main import app


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(principal):
    return {"Authorization": f"Bearer {create_access_token(principal.user_id, principal.role.value)}"}


class TestAuthRoutes:
    def test_register_and_me(self, client):
        response = client.post("/api/auth/register", json={
            "name": "New Fan",
            "username": "new_fan",
            "password": "secret123",
            "confirm_password": "secret123",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["user"]["username"] == "new_fan"
        assert body["user"]["role"] == "user"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["name"] == "New Fan"

    def test_password_mismatch(self, client):
        response = client.post("/api/auth/register", json={
            "name": "New Fan",
            "username": "new_fan",
            "password": "secret123",
            "confirm_password": "secret999",
        })
        assert response.status_code == 400
        assert "Passwords do not match" in response.json()["detail"]

    def test_duplicate_username(self, client, fan):
        response = client.post("/api/auth/register", json={
            "name": "Copy", "username": "fan", "password": "secret123", "confirm_password": "secret123",
        })
        assert response.status_code == 409

    def test_login_separation(self, client, fan, admin):
        assert client.post("/api/auth/login", json={"username": "fan", "password": "secret123"}).status_code == 200

        refused = client.post("/api/auth/login", json={"username": "admin", "password": "secret123"})
        assert refused.status_code == 403
        assert refused.json()["detail"] == "Please use the admin login page"

        ok = client.post("/api/auth/admin/login", json={"username": "admin", "password": "secret123"})
        assert ok.status_code == 200
        assert ok.json()["user"]["role"] == "admin"

    def test_refresh(self, client, fan):
        response = client.post("/api/auth/refresh", json={"refresh_token": create_refresh_token(fan.user_id)})
        assert response.status_code == 200
        assert response.json()["access_token"]

        # Access tokens are not refresh tokens
        bad = client.post("/api/auth/refresh", json={"refresh_token": create_access_token(fan.user_id)})
        assert bad.status_code == 401

    def test_missing_token(self, client):
        assert client.get("/api/auth/me").status_code in (401, 403)

    def test_username_check(self, client, fan):
        assert client.get("/api/auth/username/fan").json()["available"] is False
        assert client.get("/api/auth/username/someone_new").json()["available"] is True


class TestMatchRoutes:
    def test_list_and_get(self, client, match):
        listing = client.get("/api/matches")
        assert listing.status_code == 200
        assert listing.json()["pagination"]["total"] == 1

        detail = client.get(f"/api/matches/{match.id}").json()
        assert detail["home_team"]["short_name"] == "IND"
        assert detail["status"] == "live"

    def test_unknown_match(self, client):
        response = client.get("/api/matches/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Match not found"

    def test_create_requires_admin(self, client, fan, admin, teams):
        home, away = teams
        payload = {
            "match_type": "t20",
            "format": "league",
            "venue": "Chepauk",
            "start_date": "2024-04-01T19:30:00",
            "home_team_id": home.id,
            "away_team_id": away.id,
        }
        assert client.post("/api/matches", json=payload, headers=auth(fan)).status_code == 403

        created = client.post("/api/matches", json=payload, headers=auth(admin))
        assert created.status_code == 201
        assert created.json()["status"] == "upcoming"

    def test_teams_listing(self, client, teams):
        names = [t["name"] for t in client.get("/api/matches/teams").json()]
        assert names == ["Australia", "India"]

    def test_predictions(self, client, fan, match, teams):
        home, _ = teams
        response = client.post(
            f"/api/matches/{match.id}/predictions", json={"team_id": home.id}, headers=auth(fan)
        )
        assert response.status_code == 200
        assert response.json() == [{"team_id": home.id, "count": 1, "percentage": 100}]


class TestCommentaryRoutes:
    def _ball(self, **overrides):
        payload = {"innings_number": 1, "over_number": 0, "ball_number": 1, "runs": 4, "description": "Cover drive"}
        payload.update(overrides)
        return payload

    def test_add_update_delete_keep_scores_in_step(self, client, admin, match):
        added = client.post(f"/api/matches/{match.id}/commentary", json=self._ball(), headers=auth(admin))
        assert added.status_code == 201
        assert added.json()["scores"] == {
            "home_score": "4/0", "away_score": "0/0", "current_innings": 1, "current_over": 0.1,
        }
        commentary_id = added.json()["commentary"]["id"]

        updated = client.patch(
            f"/api/matches/{match.id}/commentary/{commentary_id}",
            json={"runs": 0, "is_wicket": True, "wicket_type": "bowled"},
            headers=auth(admin),
        )
        assert updated.status_code == 200
        assert updated.json()["scores"]["home_score"] == "0/1"

        deleted = client.delete(f"/api/matches/{match.id}/commentary/{commentary_id}", headers=auth(admin))
        assert deleted.status_code == 200
        assert deleted.json()["scores"] == {
            "home_score": None, "away_score": None, "current_innings": None, "current_over": None,
        }
        assert client.get(f"/api/matches/{match.id}").json()["home_score"] is None

    def test_fans_cannot_add(self, client, fan, match):
        response = client.post(f"/api/matches/{match.id}/commentary", json=self._ball(), headers=auth(fan))
        assert response.status_code == 403

    def test_invalid_ball_rejected(self, client, admin, match):
        response = client.post(
            f"/api/matches/{match.id}/commentary", json=self._ball(ball_number=7), headers=auth(admin)
        )
        assert response.status_code == 422

    def test_database_failure_is_500(self, client, admin, match, monkeypatch):
        def failing_commit(session):
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(Session, "commit", failing_commit)
        response = client.post(f"/api/matches/{match.id}/commentary", json=self._ball(), headers=auth(admin))

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to add commentary"}
        monkeypatch.undo()
        assert client.get(f"/api/matches/{match.id}").json()["home_score"] is None

    def test_reactions_and_comments(self, client, admin, fan, match):
        added = client.post(f"/api/matches/{match.id}/commentary", json=self._ball(), headers=auth(admin))
        commentary_id = added.json()["commentary"]["id"]

        reacted = client.post(
            f"/api/commentary/{commentary_id}/reactions", json={"reaction_type": "fire"}, headers=auth(fan)
        )
        assert reacted.json() == {"added": True, "reactions": {"fire": 1}}

        comment = client.post(
            f"/api/commentary/{commentary_id}/comments", json={"content": "Shot!"}, headers=auth(fan)
        )
        assert comment.status_code == 201

        listed = client.get(f"/api/matches/{match.id}/commentary").json()
        assert listed[0]["reactions"] == {"fire": 1}
        assert listed[0]["comments"][0]["content"] == "Shot!"
        assert listed[0]["comments"][0]["user"]["username"] == "fan"


class TestSocialRoutes:
    def test_post_feed_and_like(self, client, fan, other_fan):
        created = client.post("/api/posts", json={"content": "Test cricket is back #ashes"}, headers=auth(fan))
        assert created.status_code == 201
        post_id = created.json()["id"]
        assert created.json()["hashtags"] == ["ashes"]

        liked = client.post(f"/api/posts/{post_id}/like", headers=auth(other_fan))
        assert liked.json() == {"liked": True}

        feed = client.get("/api/posts", headers=auth(other_fan)).json()
        assert feed["data"][0]["like_count"] == 1
        assert feed["data"][0]["is_liked"] is True

        anonymous = client.get("/api/posts").json()
        assert anonymous["data"][0]["is_liked"] is False

    def test_poll_post(self, client, fan, other_fan):
        created = client.post("/api/posts", json={
            "content": "Who wins?",
            "poll": {"options": ["India", "Australia"], "expires_in": 2},
        }, headers=auth(fan)).json()
        option_id = created["poll"]["options"][0]["id"]

        assert client.post(f"/api/posts/polls/options/{option_id}/vote", headers=auth(other_fan)).status_code == 200
        again = client.post(f"/api/posts/polls/options/{option_id}/vote", headers=auth(other_fan))
        assert again.status_code == 409

    def test_delete_someone_elses_post(self, client, fan, other_fan):
        post_id = client.post("/api/posts", json={"content": "mine"}, headers=auth(fan)).json()["id"]
        assert client.delete(f"/api/posts/{post_id}", headers=auth(other_fan)).status_code == 403

    def test_follow_and_notifications(self, client, fan, other_fan):
        followed = client.post(f"/api/users/{fan.user_id}/follow", headers=auth(other_fan))
        assert followed.json() == {"following": True}

        profile = client.get("/api/users/fan", headers=auth(other_fan)).json()
        assert profile["followers_count"] == 1
        assert profile["is_following"] is True

        notes = client.get("/api/users/me/notifications", headers=auth(fan)).json()
        assert notes["unread"] == 1
        assert notes["data"][0]["type"] == "follow"
        assert notes["data"][0]["sender"]["username"] == "other_fan"

        marked = client.post("/api/users/me/notifications/read", json={}, headers=auth(fan))
        assert marked.json() == {"updated": 1}

    def test_follow_self(self, client, fan):
        response = client.post(f"/api/users/{fan.user_id}/follow", headers=auth(fan))
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot follow yourself"


def test_health(client):
    assert client.get("/api/health").json() == {"status": "healthy"}
