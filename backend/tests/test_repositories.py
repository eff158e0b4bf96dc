"""Tests for the SQL grant stores, the capability probe and error classification."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from docgate.database import engine
from docgate.exceptions import DocumentNotFoundError, ResourceUnavailableError, TransientStoreError
from docgate.models import DocumentAclEntry, GroupDocumentLink, GroupMembership, SharedLink
from docgate.repositories import (
    GRANT_SOURCE_TABLES,
    AclRepository,
    DocumentRepository,
    LinkRepository,
    MembershipRepository,
    ShareRepository,
    probe_grant_sources,
)


class _PgError(Exception):
    """Stands in for a driver error carrying a PostgreSQL SQLSTATE."""

    def __init__(self, pgcode, message="error"):
        super().__init__(message)
        self.pgcode = pgcode


def _raise(exc):
    def _fn():
        raise exc
    return _fn


class TestMembershipRepository:

    def test_only_active_memberships_returned(self, db, seed):
        seed.group("g1")
        seed.group("g2")
        seed.member("g1", "u2", role="admin")
        seed.member("g2", "u2", role="owner", is_active=False)

        rows = MembershipRepository(db).active_memberships("u2", ["g1", "g2"])
        assert rows == [("g1", "admin")]

    def test_filters_to_requested_groups(self, db, seed):
        seed.group("g1")
        seed.group("g2")
        seed.member("g1", "u2")
        seed.member("g2", "u2")
        assert MembershipRepository(db).active_memberships("u2", ["g2"]) == [("g2", "member")]

    def test_empty_group_ids_return_nothing(self, db):
        assert MembershipRepository(db).active_memberships("u2", []) == []

    def test_deactivated_membership_disappears(self, db, seed):
        seed.group("g1")
        membership = seed.member("g1", "u2")
        membership.deactivate()
        db.commit()
        assert membership.left_at is not None
        assert MembershipRepository(db).active_group_ids("u2") == []

        membership.reactivate(role="viewer")
        db.commit()
        assert MembershipRepository(db).active_memberships("u2", ["g1"]) == [("g1", "viewer")]


class TestShareRepository:

    def test_email_match_is_case_insensitive(self, db, seed):
        seed.document()
        seed.share("d1", email="Alice@Example.com", access_level="download")
        shares = ShareRepository(db).list_active_shares("d1", "alice@example.com", None)
        assert [s.access_level for s in shares] == ["download"]

    def test_matches_by_user_id(self, db, seed):
        seed.document()
        seed.share("d1", user_id="u4")
        assert len(ShareRepository(db).list_active_shares("d1", None, "u4")) == 1
        assert ShareRepository(db).list_active_shares("d1", None, "u5") == []

    def test_inactive_shares_excluded(self, db, seed):
        seed.document()
        seed.share("d1", user_id="u4", is_active=False)
        assert ShareRepository(db).list_active_shares("d1", None, "u4") == []

    def test_expired_shares_still_returned(self, db, seed):
        # Expiry is judged by the resolver against its own clock.
        seed.document()
        seed.share("d1", user_id="u4", expires_in=timedelta(days=-1))
        assert len(ShareRepository(db).list_active_shares("d1", None, "u4")) == 1

    def test_no_identity_returns_nothing(self, db, seed):
        seed.document()
        seed.share("d1", user_id="u4")
        assert ShareRepository(db).list_active_shares("d1", None, None) == []


class TestListingQueries:

    def test_link_and_acl_document_ids(self, db, seed):
        seed.group("g1")
        seed.document("d1")
        seed.document("d2")
        seed.link("g1", "d1")
        seed.acl("d2", "user", "u2")
        seed.acl("d1", "group", "g9")

        assert LinkRepository(db).document_ids_for_groups(["g1"]) == ["d1"]
        assert AclRepository(db).document_ids_for_subjects("u2", []) == ["d2"]
        assert sorted(AclRepository(db).document_ids_for_subjects("u2", ["g9"])) == ["d1", "d2"]

    def test_documents_in_primary_groups(self, db, seed):
        seed.group("g1")
        seed.document("d1", primary_group_id="g1")
        seed.document("d2")
        docs = DocumentRepository(db).list_in_primary_groups(["g1"])
        assert [d.id for d in docs] == ["d1"]

    def test_get_document_missing_raises(self, db):
        with pytest.raises(DocumentNotFoundError):
            DocumentRepository(db).get_document("missing")


class TestCapabilityProbe:

    def test_all_sources_present(self):
        assert probe_grant_sources(engine) == GRANT_SOURCE_TABLES

    def test_dropped_table_reported_missing(self, drop_table, caplog):
        drop_table(DocumentAclEntry)
        with caplog.at_level("WARNING"):
            present = probe_grant_sources(engine)
        assert present == GRANT_SOURCE_TABLES - {"document_acl"}
        assert any("document_acl" in r.getMessage() for r in caplog.records)

    def test_unprovisioned_source_skips_the_query(self, db):
        provisioned = GRANT_SOURCE_TABLES - {"group_documents"}
        repo = LinkRepository(db, provisioned)
        with pytest.raises(ResourceUnavailableError) as exc_info:
            repo._read(_raise(AssertionError("query must not run")))
        assert exc_info.value.resource == "group_documents"

    def test_documents_table_is_never_treated_as_optional(self, db, seed):
        seed.document()
        doc = DocumentRepository(db, frozenset()).get_document("d1")
        assert doc.id == "d1"


class TestErrorClassification:

    @pytest.mark.parametrize("model,call", [
        (DocumentAclEntry, lambda db: AclRepository(db).list_acl_entries("d1")),
        (GroupDocumentLink, lambda db: LinkRepository(db).list_links("d1")),
        (SharedLink, lambda db: ShareRepository(db).list_active_shares("d1", None, "u2")),
        (GroupMembership, lambda db: MembershipRepository(db).active_memberships("u2", ["g1"])),
    ])
    def test_missing_table_discovered_at_query_time(self, db, drop_table, model, call):
        drop_table(model)
        with pytest.raises(ResourceUnavailableError) as exc_info:
            call(db)
        assert exc_info.value.resource == model.__tablename__

    def test_session_usable_after_missing_table(self, db, seed, drop_table):
        seed.document()
        drop_table(DocumentAclEntry)
        with pytest.raises(ResourceUnavailableError):
            AclRepository(db).list_acl_entries("d1")
        assert DocumentRepository(db).get_document("d1").id == "d1"

    def test_undefined_table_sqlstate(self, db):
        exc = OperationalError("SELECT 1", {}, _PgError("42P01"))
        with pytest.raises(ResourceUnavailableError):
            AclRepository(db)._read(_raise(exc))

    def test_statement_timeout_is_transient(self, db):
        exc = OperationalError("SELECT 1", {}, _PgError("57014", "canceling statement due to statement timeout"))
        with pytest.raises(TransientStoreError) as exc_info:
            ShareRepository(db)._read(_raise(exc))
        assert exc_info.value.resource == "shared_documents"
        assert exc_info.value.status_code == 503

    def test_unclassified_error_is_transient(self, db):
        exc = OperationalError("SELECT 1", {}, Exception("database is locked"))
        with pytest.raises(TransientStoreError) as exc_info:
            MembershipRepository(db)._read(_raise(exc))
        assert exc_info.value.details["original_error"] == "OperationalError"

    def test_naive_sqlite_timestamps_round_trip_as_utc(self, db, seed):
        seed.document()
        share = seed.share("d1", user_id="u4", expires_in=timedelta(hours=1))
        db.refresh(share)
        expires = share.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        assert expires > datetime.now(timezone.utc)
