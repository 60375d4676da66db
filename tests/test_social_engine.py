"""
Tests for accounts, profiles, follows and notifications.
"""
import pytest

from cricbook.auth.principal import Principal
from cricbook.auth.utils import verify_password
from cricbook.engine.errors import ConflictError, DomainValidationError, NotFoundError, PermissionDenied
from cricbook.engine.social_engine import SocialEngine, validate_registration
from cricbook.models import Notification, NotificationType, UserRole


class TestRegistration:
    def test_register_hashes_password(self, test_db):
        user = SocialEngine(test_db).register("Virat Fan", "kohli_18", "secret123", "secret123")

        assert user.id is not None
        assert user.role == UserRole.USER
        assert user.password_hash != "secret123"
        assert verify_password("secret123", user.password_hash)

    def test_duplicate_username(self, test_db, fan):
        with pytest.raises(ConflictError, match="Username already taken"):
            SocialEngine(test_db).register("Someone", "fan", "secret123", "secret123")

    @pytest.mark.parametrize("name,username,password,confirm,message", [
        ("A", "valid_name", "secret123", "secret123", "Name must be at least 2 characters"),
        ("Valid", "ab", "secret123", "secret123", "Username must be 3-20 characters"),
        ("Valid", "bad name!", "secret123", "secret123", "Username must be 3-20 characters"),
        ("Valid", "valid_name", "short", "short", "Password must be between 6 and 100 characters"),
        ("Valid", "valid_name", "secret123", "secret124", "Passwords do not match"),
    ])
    def test_validation(self, name, username, password, confirm, message):
        assert any(message in e for e in validate_registration(name, username, password, confirm))

    def test_username_available(self, test_db, fan):
        engine = SocialEngine(test_db)
        assert engine.username_available("fan") is False
        assert engine.username_available("newcomer") is True


class TestAuthentication:
    def test_user_login(self, test_db, fan):
        assert SocialEngine(test_db).authenticate("fan", "secret123").id == fan.user_id

    def test_wrong_password(self, test_db, fan):
        with pytest.raises(PermissionDenied, match="Invalid username or password"):
            SocialEngine(test_db).authenticate("fan", "wrong-pass")

    def test_unknown_user(self, test_db):
        with pytest.raises(PermissionDenied, match="Invalid username or password"):
            SocialEngine(test_db).authenticate("nobody", "secret123")

    def test_missing_credentials(self, test_db):
        with pytest.raises(DomainValidationError, match="Please enter username and password"):
            SocialEngine(test_db).authenticate("", "")

    def test_admin_must_use_admin_login(self, test_db, admin):
        with pytest.raises(PermissionDenied, match="Please use the admin login page"):
            SocialEngine(test_db).authenticate("admin", "secret123")

    def test_admin_login(self, test_db, admin):
        assert SocialEngine(test_db).authenticate("admin", "secret123", admin=True).is_admin

    def test_user_refused_at_admin_login(self, test_db, fan):
        with pytest.raises(PermissionDenied, match="Admin credentials required"):
            SocialEngine(test_db).authenticate("fan", "secret123", admin=True)

    def test_create_admin(self, test_db):
        user = SocialEngine(test_db).create_admin("scorer", "secret123", "Head Scorer")
        assert user.role == UserRole.ADMIN
        assert user.is_verified


class TestProfiles:
    def test_profile_counts(self, test_db, fan, other_fan):
        engine = SocialEngine(test_db)
        engine.toggle_follow(other_fan, fan.user_id)

        profile = engine.get_profile("fan", viewer=other_fan)

        assert profile.followers_count == 1
        assert profile.following_count == 0
        assert profile.posts_count == 0
        assert profile.is_following is True
        assert engine.get_profile("fan").is_following is False

    def test_unknown_profile(self, test_db):
        with pytest.raises(NotFoundError):
            SocialEngine(test_db).get_profile("ghost")

    def test_update_profile(self, test_db, fan):
        user = SocialEngine(test_db).update_profile(fan, {
            "name": "  Super Fan ",
            "bio": "Test cricket forever",
            "website": "https://example.com",
        })
        assert user.name == "Super Fan"
        assert user.bio == "Test cricket forever"
        assert user.website == "https://example.com"

    def test_clear_website(self, test_db, fan):
        engine = SocialEngine(test_db)
        engine.update_profile(fan, {"website": "https://example.com"})
        assert engine.update_profile(fan, {"website": ""}).website is None

    def test_invalid_profile(self, test_db, fan):
        with pytest.raises(DomainValidationError, match="valid URL"):
            SocialEngine(test_db).update_profile(fan, {"website": "not a url"})
        with pytest.raises(DomainValidationError, match="Bio"):
            SocialEngine(test_db).update_profile(fan, {"bio": "x" * 161})

    def test_search(self, test_db, fan, other_fan, admin):
        page = SocialEngine(test_db).search_users("fan")
        assert {u.username for u in page.items} == {"fan", "other_fan"}
        assert page.total == 2


class TestFollows:
    def test_follow_toggle_and_notification(self, test_db, fan, other_fan):
        engine = SocialEngine(test_db)

        assert engine.toggle_follow(fan, other_fan.user_id) is True
        notes = test_db.query(Notification).filter_by(recipient_id=other_fan.user_id).all()
        assert [n.type for n in notes] == [NotificationType.FOLLOW]

        assert engine.toggle_follow(fan, other_fan.user_id) is False
        assert engine.followers(other_fan.user_id).total == 0

    def test_cannot_follow_self(self, test_db, fan):
        with pytest.raises(DomainValidationError, match="Cannot follow yourself"):
            SocialEngine(test_db).toggle_follow(fan, fan.user_id)

    def test_follow_unknown_user(self, test_db, fan):
        with pytest.raises(NotFoundError):
            SocialEngine(test_db).toggle_follow(fan, 999)

    def test_followers_and_following(self, test_db, fan, other_fan, admin):
        engine = SocialEngine(test_db)
        engine.toggle_follow(fan, admin.user_id)
        engine.toggle_follow(other_fan, admin.user_id)

        assert {u.username for u in engine.followers(admin.user_id).items} == {"fan", "other_fan"}
        assert [u.username for u in engine.following(fan.user_id).items] == ["admin"]


class TestNotifications:
    def test_unread_count_and_mark_read(self, test_db, fan, other_fan, admin):
        engine = SocialEngine(test_db)
        engine.toggle_follow(other_fan, fan.user_id)
        engine.toggle_follow(admin, fan.user_id)

        page = engine.notifications(fan)
        assert page.total == 2
        assert page.extra["unread"] == 2

        first_id = page.items[0].id
        assert engine.mark_notifications_read(fan, [first_id]) == 1
        assert engine.notifications(fan).extra["unread"] == 1
        assert engine.notifications(fan, unread_only=True).total == 1

        assert engine.mark_notifications_read(fan) == 2
        assert engine.notifications(fan).extra["unread"] == 0

    def test_cannot_mark_someone_elses(self, test_db, fan, other_fan):
        engine = SocialEngine(test_db)
        engine.toggle_follow(other_fan, fan.user_id)
        note_id = engine.notifications(fan).items[0].id

        assert engine.mark_notifications_read(other_fan, [note_id]) == 0

    def test_principal_from_user(self, test_db, admin):
        assert isinstance(admin, Principal)
        assert admin.is_admin
