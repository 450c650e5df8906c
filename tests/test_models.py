"""
tests/test_models.py — Unit tests for Models dataclasses.

Covers the version grammar, JSON (de)serialisation of the knowledge
document, schema migration and configuration validation.
"""
import pytest

from Models import (
    INITIAL_VERSION,
    PAGE_CATEGORIES,
    SCHEMA_VERSION,
    AppKnowledge,
    ConfigurationError,
    ExplorationResult,
    ExplorerConfig,
    FieldRecord,
    Flow,
    FormEntry,
    KnowledgeFormatError,
    PageEntry,
    Step,
    UpdateEntry,
    bump_minor,
    is_valid_start_url,
    migrate_knowledge,
    parse_version,
)


def make_knowledge() -> AppKnowledge:
    knowledge = AppKnowledge(app_name="demo", base_url="https://example.com/")
    knowledge.pages["authentication"].append(
        PageEntry(name="Log in", url="https://example.com/login", path="/login", type="login",
                  custom_data={"note": "uses SSO"})
    )
    knowledge.forms.append(
        FormEntry(
            action="https://example.com/login",
            method="post",
            fields=[FieldRecord(type="email", name="email")],
            pattern="login",
            test_data={"email": "test@example.com"},
            custom_test_data={"email": "qa@example.com"},
        )
    )
    knowledge.user_flows.append(Flow(name="Login Flow", steps=[Step(action="Navigate", url="https://example.com/login")]))
    knowledge.update_history.append(
        UpdateEntry(date="2026-01-01T00:00:00+00:00", previous_version="1.0.0", new_version="1.1.0",
                    pages_added=1, forms_added=0, flows_added=0)
    )
    return knowledge


# ---------------------------------------------------------------------------
# Version grammar
# ---------------------------------------------------------------------------


class TestVersion:
    def test_initial_version(self):
        assert INITIAL_VERSION == "1.0.0"

    def test_parse_full(self):
        assert parse_version("2.5.1") == (2, 5, 1)

    def test_parse_two_part(self):
        assert parse_version("1.3") == (1, 3, 0)

    @pytest.mark.parametrize("bad", ["", "1", "v1.0.0", "1.x.0", "1.0.0-beta"])
    def test_parse_rejects_garbage(self, bad):
        with pytest.raises(KnowledgeFormatError):
            parse_version(bad)

    def test_bump_minor(self):
        assert bump_minor("1.0.0") == "1.1.0"

    def test_bump_minor_resets_patch(self):
        assert bump_minor("1.4.7") == "1.5.0"

    def test_bump_minor_carries_no_overflow(self):
        assert bump_minor("1.9.0") == "1.10.0"


# ---------------------------------------------------------------------------
# Knowledge document
# ---------------------------------------------------------------------------


class TestAppKnowledge:
    def test_defaults(self):
        k = AppKnowledge(app_name="demo", base_url="https://example.com/")
        assert k.version == INITIAL_VERSION
        assert tuple(k.pages) == PAGE_CATEGORIES
        assert k.framework.framework == "unknown"
        assert k.generated_at

    def test_to_dict_uses_camel_case(self):
        data = make_knowledge().to_dict()
        assert data["schemaVersion"] == SCHEMA_VERSION
        assert data["appName"] == "demo"
        assert data["baseUrl"] == "https://example.com/"
        assert "userFlows" in data and "testScenarios" in data and "updateHistory" in data
        form = data["forms"][0]
        assert form["fieldCount"] == 1
        assert form["generatedTestData"] == {"email": "test@example.com"}
        assert form["customTestData"] == {"email": "qa@example.com"}
        assert data["pages"]["authentication"][0]["customData"] == {"note": "uses SSO"}

    def test_custom_keys_omitted_when_absent(self):
        entry = PageEntry(name="x", url="https://example.com/x", path="/x", type="page")
        assert "customData" not in entry.to_dict()
        form = FormEntry(action="https://example.com/x")
        assert "customTestData" not in form.to_dict()

    def test_round_trip(self):
        original = make_knowledge()
        restored = AppKnowledge.from_dict(original.to_dict())
        assert restored == original

    def test_form_path(self):
        assert FormEntry(action="https://example.com/a/b?x=1").path == "/a/b"
        assert FormEntry(action="https://example.com").path == "/"

    def test_page_paths(self):
        assert make_knowledge().page_paths() == {"/login"}

    def test_missing_required_key_is_format_error(self):
        data = make_knowledge().to_dict()
        del data["appName"]
        with pytest.raises(KnowledgeFormatError):
            AppKnowledge.from_dict(data)

    def test_wrong_shape_is_format_error(self):
        data = make_knowledge().to_dict()
        data["pages"] = ["not", "a", "mapping"]
        with pytest.raises(KnowledgeFormatError):
            AppKnowledge.from_dict(data)

    def test_bad_version_is_format_error(self):
        data = make_knowledge().to_dict()
        data["version"] = "latest"
        with pytest.raises(KnowledgeFormatError):
            AppKnowledge.from_dict(data)


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------


class TestMigration:
    def _legacy(self) -> dict:
        return {
            "appName": "demo",
            "baseUrl": "https://example.com/",
            "version": "1.2.0",
            "pages": {"content": [{"name": "Homepage", "url": "https://example.com/", "path": "/", "type": "homepage"}]},
            "forms": [{"action": "https://example.com/search", "method": "get", "fields": [],
                       "pattern": "search", "testData": {"q": "test_q"}}],
        }

    def test_unversioned_document_is_upgraded(self):
        migrated = migrate_knowledge(self._legacy())
        assert migrated["schemaVersion"] == SCHEMA_VERSION
        assert migrated["removedPages"] == []
        assert migrated["updateHistory"] == []
        assert migrated["forms"][0]["generatedTestData"] == {"q": "test_q"}
        assert "testData" not in migrated["forms"][0]

    def test_migration_does_not_mutate_input(self):
        legacy = self._legacy()
        migrate_knowledge(legacy)
        assert "testData" in legacy["forms"][0]
        assert "schemaVersion" not in legacy

    def test_legacy_document_loads(self):
        k = AppKnowledge.from_dict(self._legacy())
        assert k.version == "1.2.0"
        assert k.forms[0].test_data == {"q": "test_q"}
        assert [p.path for p in k.pages["content"]] == ["/"]
        assert k.pages["authentication"] == []

    @pytest.mark.parametrize("schema", [-1, -7])
    def test_negative_schema_rejected(self, schema):
        with pytest.raises(KnowledgeFormatError):
            migrate_knowledge({"schemaVersion": schema})

    def test_negative_schema_document_does_not_load(self):
        data = self._legacy()
        data["schemaVersion"] = -1
        with pytest.raises(KnowledgeFormatError):
            AppKnowledge.from_dict(data)

    def test_newer_schema_rejected(self):
        with pytest.raises(KnowledgeFormatError):
            migrate_knowledge({"schemaVersion": SCHEMA_VERSION + 1})

    def test_non_object_rejected(self):
        with pytest.raises(KnowledgeFormatError):
            migrate_knowledge(["not", "an", "object"])


# ---------------------------------------------------------------------------
# ExplorationResult / ExplorerConfig
# ---------------------------------------------------------------------------


class TestExplorationResult:
    def test_statistics_default_explored_count(self):
        result = ExplorationResult(app_name="demo", base_url="https://example.com/", failed=["a", "b"])
        stats = result.statistics()
        assert stats["pagesExplored"] == 2
        assert stats["pagesFailed"] == 2
        assert stats["formsFound"] == 0


class TestExplorerConfig:
    def test_valid_create_config(self):
        ExplorerConfig(app_name="demo", target_url="http://localhost:3000").validate()

    def test_update_without_url_is_valid(self):
        ExplorerConfig(app_name="demo", update_mode=True).validate()

    def test_docs_without_url_is_valid(self):
        ExplorerConfig(app_name="demo", context_path="docs/").validate()

    def test_missing_name(self):
        with pytest.raises(ConfigurationError):
            ExplorerConfig(app_name=None, target_url="http://localhost:3000").validate()

    def test_missing_url(self):
        with pytest.raises(ConfigurationError):
            ExplorerConfig(app_name="demo").validate()

    def test_invalid_url(self):
        with pytest.raises(ConfigurationError):
            ExplorerConfig(app_name="demo", target_url="localhost:3000").validate()

    @pytest.mark.parametrize(
        "overrides",
        [{"max_depth": -1}, {"max_pages": 0}, {"concurrency": 0}],
    )
    def test_out_of_range_bounds(self, overrides):
        with pytest.raises(ConfigurationError):
            ExplorerConfig(app_name="demo", target_url="https://example.com", **overrides).validate()

    def test_screenshot_dir_defaults_under_tmp(self):
        path = ExplorerConfig(app_name="demo").resolved_screenshot_dir
        assert path.parts[-2:] == ("app-skill-screenshots", "demo")

    def test_is_valid_start_url(self):
        assert is_valid_start_url("https://example.com/app")
        assert not is_valid_start_url("ftp://example.com")
        assert not is_valid_start_url("https://")
