from worksheet.formulation.templates import template_field
from worksheet.formulation.values import empty_formulation_value, node_answer


def test_empty_value_has_every_node_field() -> None:
    field = template_field("tpl-cft-three-systems")
    value = empty_formulation_value(field)
    assert value == {
        "nodes": {
            "system-0": {"text": ""},
            "system-1": {"text": ""},
            "system-2": {"text": ""},
        }
    }


def test_node_answer_reads_leniently() -> None:
    value = {"nodes": {"cycle-0": {"text": "Chest tightness", "n": None}}}
    assert node_answer(value, "cycle-0", "text") == "Chest tightness"
    assert node_answer(value, "cycle-0", "n") == ""
    assert node_answer(value, "cycle-9", "text") == ""
    assert node_answer("nope", "cycle-0", "text") == ""
    assert node_answer({"nodes": []}, "cycle-0", "text") == ""
