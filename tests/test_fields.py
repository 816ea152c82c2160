from __future__ import annotations

from stalib.fields import (
    FieldKind,
    classify,
    find_navigation_link,
    format_primitive,
    link_label,
    navigation_links,
    self_link,
    summarize_nested,
    title_for,
)


def test_classify_navigation_link():
    c = classify("Datastreams@iot.navigationLink", "Datastreams(1)")
    assert c.kind is FieldKind.NAVIGATION
    assert c.label == "Datastreams"
    assert c.url == "Datastreams(1)"
    assert c.is_explorable


def test_classify_self_link():
    c = classify("@iot.selfLink", "http://h/v1/Things(1)")
    assert c.kind is FieldKind.SELF
    assert c.url == "http://h/v1/Things(1)"


def test_classify_primitive_and_nested():
    assert classify("name", "x").kind is FieldKind.PRIMITIVE
    assert classify("count", 3).kind is FieldKind.PRIMITIVE
    assert classify("gone", None).kind is FieldKind.PRIMITIVE
    assert classify("properties", {}).kind is FieldKind.NESTED
    assert classify("coordinates", []).kind is FieldKind.NESTED


def test_non_string_link_values_are_not_explorable():
    assert classify("Things@iot.navigationLink", {"href": "x"}).kind is FieldKind.NESTED
    assert classify("@iot.selfLink", 5).kind is FieldKind.PRIMITIVE


def test_link_labels_are_humanized():
    assert link_label("ObservedProperty@iot.navigationLink") == "Observed Property"
    assert link_label("Multi_Datastreams@iot.navigationLink") == "Multi Datastreams"
    assert link_label("sensor2Things@iot.navigationLink") == "sensor2 Things"
    assert link_label("@iot.navigationLink") == "Related"
    assert link_label("_@iot.navigationLink") == "Related"


def test_format_primitive():
    assert format_primitive(None) == "—"
    assert format_primitive(True) == "true"
    assert format_primitive(False) == "false"
    assert format_primitive(1.5) == "1.5"
    assert format_primitive("x") == "x"


def test_title_for_prefers_name_then_id_then_description():
    assert title_for({"name": "Lab", "@iot.id": 1}, "fb") == "Lab"
    assert title_for({"name": "  ", "@iot.id": 7}, "fb") == "@iot.id 7"
    assert title_for({"id": "abc"}, "fb") == "id abc"
    assert title_for({"@iot.id": True, "description": "A sensor"}, "fb") == "A sensor"
    assert title_for({"description": ""}, "fb") == "fb"
    assert title_for(["not", "a", "mapping"], "fb") == "fb"


def test_navigation_links_and_lookup():
    entity = {
        "@iot.selfLink": "http://h/v1/Things(1)",
        "Datastreams@iot.navigationLink": "Things(1)/Datastreams",
        "HistoricalLocations@iot.navigationLink": "Things(1)/HistoricalLocations",
        "name": "x",
    }
    assert [label for _, label, _ in navigation_links(entity)] == ["Datastreams", "Historical Locations"]
    assert find_navigation_link(entity, "historical locations") == (
        "Historical Locations",
        "Things(1)/HistoricalLocations",
    )
    assert find_navigation_link(entity, "Datastreams@iot.navigationLink") == (
        "Datastreams",
        "Things(1)/Datastreams",
    )
    assert find_navigation_link(entity, "Sensors") is None
    assert self_link(entity) == "http://h/v1/Things(1)"


def test_summarize_nested_truncates():
    assert summarize_nested({"a": 1}) == '{"a":1}'
    assert summarize_nested({"key": "x" * 100}, limit=20).endswith("...")
    assert len(summarize_nested({"key": "x" * 100}, limit=20)) == 20
