from .Analyzer import analyze, form_entry, page_entry
from .Classifier import (
    PASSWORD_PLACEHOLDER,
    PageSignals,
    categorize_page,
    classify_fields,
    classify_form,
    classify_form_record,
    classify_page,
    classify_page_record,
    example_value_for,
    generate_test_data,
    page_name_for,
)
from .Rules import Rule, RuleList
from .Synthesizer import analyze_navigation, detect_framework, synthesize_flows, synthesize_scenarios
