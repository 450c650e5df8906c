"""
tests/test_classifier.py — Unit tests for page, form and field classification.
"""
import pytest

from Analyzer.Classifier import (
    PASSWORD_PLACEHOLDER,
    PageSignals,
    categorize_page,
    classify_fields,
    classify_page,
    classify_page_record,
    example_value_for,
    generate_test_data,
    page_name_for,
)
from Analyzer.Rules import Rule, RuleList, contains_any
from Models import FieldRecord, PageRecord


def page(path: str, title: str = "", heading: str = "", preview: str = "", page_type: str = "page") -> PageRecord:
    return PageRecord(
        url=f"https://example.com{path}",
        path=path,
        page_name=title or path,
        page_type=page_type,
        title=title,
        heading=heading,
        description="",
        content_preview=preview,
    )


# ---------------------------------------------------------------------------
# RuleList
# ---------------------------------------------------------------------------


class TestRuleList:
    def test_first_match_wins(self):
        rules = RuleList([Rule(lambda x: x > 0, "positive"), Rule(lambda x: x > 10, "big")], default="none")
        assert rules.evaluate(20) == "positive"

    def test_default_when_nothing_matches(self):
        rules = RuleList([Rule(lambda x: x > 0, "positive")], default="none")
        assert rules.evaluate(-1) == "none"

    def test_len(self):
        assert len(RuleList([Rule(lambda x: True, 1)], default=0)) == 1

    def test_contains_any(self):
        assert contains_any("sign up today", "register", "sign up")
        assert not contains_any("welcome", "login")


# ---------------------------------------------------------------------------
# Page types
# ---------------------------------------------------------------------------


class TestClassifyPage:
    @pytest.mark.parametrize(
        "signals, expected",
        [
            (PageSignals(path="/login"), "login"),
            (PageSignals(title="Sign In", path="/session"), "login"),
            (PageSignals(path="/register"), "signup"),
            (PageSignals(heading="Sign up for free", path="/join"), "signup"),
            (PageSignals(path="/dashboard"), "dashboard"),
            (PageSignals(path="/account/settings"), "profile"),
            (PageSignals(path="/contact"), "contact"),
            (PageSignals(title="About us", path="/company"), "about"),
            (PageSignals(path="/"), "homepage"),
            (PageSignals(path="/posts/42"), "detail"),
            (PageSignals(path="/product-detail"), "detail"),
            (PageSignals(path="/product-list"), "list"),
            (PageSignals(path="/search", preview="Showing 10 of 200"), "list"),
            (PageSignals(path="/pricing"), "page"),
        ],
    )
    def test_types(self, signals, expected):
        assert classify_page(signals) == expected

    def test_login_outranks_dashboard(self):
        assert classify_page(PageSignals(title="Dashboard login", path="/x")) == "login"

    def test_homepage_title_can_override_root(self):
        # Title text is checked before the root-path rule
        assert classify_page(PageSignals(title="Login", path="/")) == "login"

    def test_record_classification_is_idempotent(self):
        record = page("/users/7", title="Jane")
        first = classify_page_record(record)
        assert first == classify_page_record(record) == "detail"


class TestPageName:
    @pytest.mark.parametrize(
        "path, title, expected",
        [
            ("/", "Anything", "Homepage"),
            ("/pricing", "Plans and pricing", "Plans and pricing"),
            ("/users/123", "", "Users Detail"),
            ("/123", "", "Detail Page"),
            ("/orders/0f8e63db-b349-4cb7-bd32-6cc515dd8808", "", "Orders Detail"),
            ("/my-settings", "", "My settings"),
            ("/user_profile", "x" * 60, "User profile"),
        ],
    )
    def test_names(self, path, title, expected):
        assert page_name_for(path, title) == expected


# ---------------------------------------------------------------------------
# Form patterns
# ---------------------------------------------------------------------------


def fields(*specs: tuple[str, str]) -> list[FieldRecord]:
    return [FieldRecord(type=t, name=n) for n, t in specs]


class TestClassifyForm:
    def test_login(self):
        assert classify_fields(fields(("email", "email"), ("password", "password"))) == "login"

    def test_signup_with_confirm(self):
        assert classify_fields(
            fields(("username", "text"), ("password", "password"), ("password_confirm", "password"))
        ) == "signup"

    def test_signup_with_many_fields(self):
        assert classify_fields(
            fields(
                ("email", "email"),
                ("password", "password"),
                ("first_name", "text"),
                ("last_name", "text"),
            )
        ) == "signup"

    def test_search(self):
        assert classify_fields(fields(("q", "search"), ("query", "text"))) == "search"

    def test_contact(self):
        assert classify_fields(fields(("name", "text"), ("message", "textarea"))) == "contact"

    def test_checkout(self):
        assert classify_fields(fields(("card_number", "text"), ("cvv", "text"))) == "checkout"

    def test_generic(self):
        assert classify_fields(fields(("title", "text"))) == "generic"

    def test_label_contributes(self):
        f = [FieldRecord(type="text", id="f1", label="Search the catalogue")]
        assert classify_fields(f) == "search"

    def test_classification_is_idempotent(self):
        f = fields(("email", "email"), ("password", "password"))
        assert classify_fields(f) == classify_fields(f)


# ---------------------------------------------------------------------------
# Test data
# ---------------------------------------------------------------------------


class TestExampleValues:
    @pytest.mark.parametrize(
        "field, expected",
        [
            (FieldRecord(type="email", name="login"), "test@example.com"),
            (FieldRecord(type="text", name="user_email"), "test@example.com"),
            (FieldRecord(type="password", name="pw"), PASSWORD_PLACEHOLDER),
            (FieldRecord(type="tel", name="mobile"), "555-0123"),
            (FieldRecord(type="text", name="username"), "John Doe"),
            (FieldRecord(type="text", name="first_name"), "John"),
            (FieldRecord(type="text", name="lastName"), "Doe"),
            (FieldRecord(type="text", name="name"), "John Doe"),
            (FieldRecord(type="text", name="street_address"), "123 Main St"),
            (FieldRecord(type="text", name="city"), "San Francisco"),
            (FieldRecord(type="text", name="zip"), "94102"),
            (FieldRecord(type="textarea", name="body"), "This is a test message."),
            (FieldRecord(type="number", name="qty"), "123"),
            (FieldRecord(type="checkbox", name="terms"), True),
            (FieldRecord(type="text", name="coupon"), "test_coupon"),
        ],
    )
    def test_values(self, field, expected):
        assert example_value_for(field) == expected

    def test_id_used_when_name_missing(self):
        assert example_value_for(FieldRecord(type="text", id="city")) == "San Francisco"

    def test_unaddressable_field_has_no_value(self):
        assert example_value_for(FieldRecord(type="text")) is None

    def test_password_value_is_never_a_real_secret(self):
        data = generate_test_data(fields(("password", "password"), ("confirm_password", "password")))
        assert set(data.values()) == {PASSWORD_PLACEHOLDER}

    def test_generate_skips_unaddressable(self):
        data = generate_test_data([FieldRecord(type="text"), FieldRecord(type="text", name="city")])
        assert data == {"city": "San Francisco"}


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class TestCategorize:
    def test_auth_pages(self):
        assert categorize_page(page("/login", page_type="login"), set()) == "authentication"

    def test_list_and_detail(self):
        assert categorize_page(page("/items", page_type="list"), set()) == "lists"
        assert categorize_page(page("/items/1", page_type="detail"), set()) == "details"

    def test_content_pages(self):
        assert categorize_page(page("/", page_type="homepage"), set()) == "content"

    def test_form_owner(self):
        assert categorize_page(page("/feedback"), {"/feedback"}) == "forms"

    def test_other(self):
        assert categorize_page(page("/pricing"), {"/feedback"}) == "other"
