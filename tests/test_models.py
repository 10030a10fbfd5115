"""Tests for Tiergate data models."""

import pytest
from pydantic import ValidationError

from tiergate.models import (
    FeatureConfig,
    Role,
    Session,
    SessionSnapshot,
    SessionState,
    SessionUser,
    Tier,
)


class TestTier:
    def test_ranks(self):
        assert [t.rank for t in (Tier.FREE, Tier.PRO, Tier.PREMIUM)] == [0, 1, 2]

    def test_ordering(self):
        assert Tier.FREE < Tier.PRO < Tier.PREMIUM
        assert Tier.PREMIUM >= Tier.PRO
        assert Tier.PRO <= Tier.PRO
        assert max(Tier) == Tier.PREMIUM

    def test_ordering_is_by_rank_not_name(self):
        # Alphabetically "premium" < "pro"; by rank it is the other way round.
        assert Tier.PREMIUM > Tier.PRO
        assert sorted([Tier.PREMIUM, Tier.FREE, Tier.PRO]) == [Tier.FREE, Tier.PRO, Tier.PREMIUM]

    def test_compare_with_int_not_supported(self):
        with pytest.raises(TypeError):
            _ = Tier.PRO < 1  # type: ignore[operator]

    def test_compare_with_str_uses_rank(self):
        assert (Tier.PREMIUM >= "pro") is True
        assert (Tier.PRO < "premium") is True
        assert (Tier.PREMIUM > "PRO") is True
        assert (Tier.FREE <= "free") is True
        assert (Tier.PRO > "premium") is False

    def test_str_on_left_uses_rank(self):
        assert ("pro" < Tier.PREMIUM) is True
        assert ("premium" >= Tier.PRO) is True

    def test_compare_with_unknown_str_raises(self):
        with pytest.raises(ValueError, match="Unknown tier 'gold'"):
            _ = Tier.PRO < "gold"

    def test_parse(self):
        assert Tier.parse("free") == Tier.FREE
        assert Tier.parse(" PRO ") == Tier.PRO
        assert Tier.parse(Tier.PREMIUM) is Tier.PREMIUM

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown tier 'gold'"):
            Tier.parse("gold")

    def test_string_value(self):
        assert str(Tier.PRO) == "pro"


class TestFeatureConfig:
    def test_valid(self):
        config = FeatureConfig(key="pdf_signing", name="PDF Signing", required_tier="pro")
        assert config.required_tier == Tier.PRO
        assert config.description == ""
        assert config.premium_add_on is False

    def test_invalid_tier(self):
        with pytest.raises(ValidationError):
            FeatureConfig(key="pdf_signing", name="PDF Signing", required_tier="gold")

    def test_invalid_key(self):
        with pytest.raises(ValidationError):
            FeatureConfig(key="9lives", name="Nine", required_tier="free")


class TestSessionModels:
    def test_empty_user_id_rejected(self):
        with pytest.raises(ValidationError):
            SessionUser(id="")

    def test_session_minimal(self):
        session = Session(user=SessionUser(id="u1"))
        assert session.user.email is None
        assert session.access_token is None


class TestSessionSnapshot:
    def test_defaults(self):
        snap = SessionSnapshot()
        assert snap.state == SessionState.UNINITIALIZED
        assert snap.is_loading is True
        assert snap.role is None
        assert snap.is_admin is False
        assert snap.is_moderator is False

    @pytest.mark.parametrize(
        ("role", "is_admin", "is_moderator"),
        [
            (None, False, False),
            (Role.USER, False, False),
            (Role.MODERATOR, False, True),
            (Role.ADMIN, True, True),
        ],
    )
    def test_derived_predicates(self, role, is_admin, is_moderator):
        snap = SessionSnapshot(state=SessionState.AUTHENTICATED, role=role, is_loading=False)
        assert snap.is_admin is is_admin
        assert snap.is_moderator is is_moderator

    def test_computed_fields_in_dump(self):
        snap = SessionSnapshot(role=Role.ADMIN)
        data = snap.model_dump(mode="json")
        assert data["is_admin"] is True
        assert data["is_moderator"] is True

    def test_role_and_tier_independent(self):
        # An admin role says nothing about subscription tier.
        snap = SessionSnapshot(role=Role.ADMIN)
        assert not hasattr(snap, "tier")
