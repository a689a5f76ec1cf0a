"""Tests for nasa_explorer/models.py: key records, rate-limit headers, OSDR parsing."""

from nasa_explorer.models import (
    DEMO_KEY,
    APIKeyRecord,
    RateLimitSnapshot,
    Study,
    StudySearchResult,
    parse_rate_limit_headers,
)


class TestAPIKeyRecord:

    def test_demo_key_is_fallback(self):
        assert APIKeyRecord(DEMO_KEY).is_fallback
        assert APIKeyRecord().is_fallback

    def test_real_key_is_not_fallback(self):
        assert not APIKeyRecord("abc123").is_fallback


class TestRateLimitHeaders:

    def test_parses_counters(self):
        snapshot = parse_rate_limit_headers({
            "X-RateLimit-Limit": "1000",
            "X-RateLimit-Remaining": "997",
            "X-RateLimit-Reset": "1710000000",
        })
        assert snapshot == RateLimitSnapshot(remaining=997, limit=1000, reset_time="1710000000")

    def test_header_names_are_case_insensitive(self):
        snapshot = parse_rate_limit_headers({"x-ratelimit-limit": "40", "x-ratelimit-remaining": "39"})
        assert snapshot.limit == 40
        assert snapshot.remaining == 39
        assert snapshot.reset_time == ""

    def test_missing_headers(self):
        assert parse_rate_limit_headers({}) is None
        assert parse_rate_limit_headers({"X-RateLimit-Limit": "1000"}) is None

    def test_malformed_headers(self):
        assert parse_rate_limit_headers({"X-RateLimit-Limit": "lots", "X-RateLimit-Remaining": "1"}) is None

    def test_remaining_above_limit_is_ignored(self):
        assert parse_rate_limit_headers({"X-RateLimit-Limit": "40", "X-RateLimit-Remaining": "41"}) is None

    def test_remaining_equal_to_limit(self):
        snapshot = parse_rate_limit_headers({"X-RateLimit-Limit": "40", "X-RateLimit-Remaining": "40"})
        assert snapshot.remaining == snapshot.limit == 40

    def test_as_dict(self):
        assert RateLimitSnapshot(5, 10, "soon").as_dict() == {"remaining": 5, "limit": 10, "resetTime": "soon"}


class TestStudy:

    def test_prefers_human_readable_fields(self):
        study = Study.from_hit({
            "_id": "raw-id",
            "_source": {
                "Accession": "OSD-1",
                "accession": "ignored",
                "Study Title": "Title",
                "title": "ignored",
                "Study Description": "Description",
            },
        })
        assert study.identifier == "OSD-1"
        assert study.title == "Title"
        assert study.description == "Description"

    def test_falls_back_to_raw_fields(self):
        study = Study.from_hit({
            "_id": "OSD-7",
            "_source": {"title": "Lower case title", "description": "plain", "Organism": ["Arabidopsis thaliana"]},
        })
        assert study.identifier == "OSD-7"
        assert study.title == "Lower case title"
        assert study.description == "plain"
        assert study.organism == "Arabidopsis thaliana"

    def test_generates_placeholders(self):
        study = Study.from_hit({"_source": {"Study Title": "   "}}, position=3)
        assert study.identifier == "OSD-unknown-3"
        assert study.title == "Untitled study OSD-unknown-3"
        assert study.description == "No description available."
        assert study.as_dict() == {
            "identifier": "OSD-unknown-3",
            "title": "Untitled study OSD-unknown-3",
            "description": "No description available.",
        }

    def test_flat_hit_without_source(self):
        study = Study.from_hit({"accession": "OSD-5", "title": "Flat"})
        assert study.identifier == "OSD-5"
        assert study.title == "Flat"


class TestStudySearchResult:

    def test_total_as_object(self):
        result = StudySearchResult.from_response({
            "hits": {"total": {"value": 42, "relation": "eq"}, "hits": [{"_id": "OSD-1", "_source": {}}]}
        })
        assert result.hits == 42
        assert [s.identifier for s in result.studies] == ["OSD-1"]

    def test_missing_total_counts_studies(self):
        result = StudySearchResult.from_response({"hits": {"hits": [{"_id": "a"}, {"_id": "b"}]}})
        assert result.hits == 2

    def test_unexpected_payloads_are_empty(self):
        assert StudySearchResult.from_response(None).as_dict() == {"hits": 0, "studies": []}
        assert StudySearchResult.from_response([]).as_dict() == {"hits": 0, "studies": []}
        assert StudySearchResult.from_response({"hits": 5}).as_dict() == {"hits": 0, "studies": []}
