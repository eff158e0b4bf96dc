"""Tests for the rank tables."""

import dataclasses

import pytest

from docgate.core.ranks import (
    RankAxis,
    RankTables,
    RequiredAction,
    parse_action,
)


@pytest.fixture()
def ranks():
    return RankTables.default()


class TestDefaultTables:

    def test_member_roles(self, ranks):
        assert [ranks.rank(RankAxis.MEMBER_ROLE, r) for r in ("viewer", "member", "admin", "owner")] == [1, 2, 3, 4]

    def test_group_link_levels(self, ranks):
        assert [ranks.rank(RankAxis.GROUP_LINK, r) for r in ("read", "write", "admin")] == [1, 2, 3]

    def test_view_and_download_share_a_rank(self, ranks):
        assert ranks.rank(RankAxis.REQUIRED_ACTION, "view") == ranks.rank(RankAxis.REQUIRED_ACTION, "download") == 1
        assert ranks.rank(RankAxis.REQUIRED_ACTION, "edit") == 2
        assert ranks.rank(RankAxis.REQUIRED_ACTION, "admin") == 3

    def test_share_synonyms(self, ranks):
        axis = RankAxis.SHARE_ACCESS
        assert ranks.rank(axis, "view") == ranks.rank(axis, "download") == ranks.rank(axis, "read") == 1
        assert ranks.rank(axis, "edit") == ranks.rank(axis, "write") == 2
        assert ranks.rank(axis, "admin") == 3

    def test_min_member_rank_mirrors_actions(self, ranks):
        for action in RequiredAction:
            assert ranks.rank(RankAxis.MIN_MEMBER_RANK, action) == ranks.rank(RankAxis.REQUIRED_ACTION, action)

    def test_enum_and_string_labels_agree(self, ranks):
        assert ranks.rank(RankAxis.REQUIRED_ACTION, RequiredAction.EDIT) == ranks.rank(RankAxis.REQUIRED_ACTION, "edit")


class TestFailClosed:

    @pytest.mark.parametrize("axis", list(RankAxis))
    def test_unknown_label_ranks_zero(self, ranks, axis):
        assert ranks.rank(axis, "superuser") == 0
        assert ranks.rank(axis, None) == 0
        assert ranks.rank(axis, "") == 0

    def test_labels_are_case_sensitive(self, ranks):
        assert ranks.rank(RankAxis.MEMBER_ROLE, "Owner") == 0

    def test_unknown_action_is_never_satisfied(self, ranks):
        assert ranks.satisfies(RankAxis.ACL_ROLE, "admin", "viewer") is False
        assert ranks.member_role_allows("owner", "publish") is False

    def test_unknown_grant_label_satisfies_nothing(self, ranks):
        for action in RequiredAction:
            assert ranks.satisfies(RankAxis.GROUP_LINK, "everything", action) is False


class TestMonotonicity:

    @pytest.mark.parametrize("axis,labels", [
        (RankAxis.GROUP_LINK, ["read", "write", "admin"]),
        (RankAxis.ACL_ROLE, ["view", "edit", "admin"]),
        (RankAxis.SHARE_ACCESS, ["view", "download", "read", "edit", "write", "admin"]),
    ])
    def test_satisfying_an_action_satisfies_every_lower_one(self, ranks, axis, labels):
        actions = sorted(RequiredAction, key=lambda a: ranks.rank(RankAxis.REQUIRED_ACTION, a))
        for label in labels:
            results = [ranks.satisfies(axis, label, a) for a in actions]
            # Once a higher action is satisfied, no lower one may be refused.
            for i, ok in enumerate(results):
                if ok:
                    assert all(results[:i])


class TestImmutability:

    def test_tables_reject_assignment(self, ranks):
        with pytest.raises(TypeError):
            ranks.member_role["viewer"] = 99

    def test_dataclass_is_frozen(self, ranks):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ranks.acl_role = {}

    def test_default_builds_independent_equal_tables(self):
        assert RankTables.default() == RankTables.default()


class TestParseAction:

    def test_known_actions(self):
        assert parse_action("view") is RequiredAction.VIEW
        assert parse_action(RequiredAction.ADMIN) is RequiredAction.ADMIN

    @pytest.mark.parametrize("value", ["viewer", "VIEW", "", None, "write"])
    def test_unknown_actions(self, value):
        assert parse_action(value) is None
