from agentshell.decoder import decode, strip_json_block


def test_fenced_array_is_returned_in_order() -> None:
    text = 'Here are routes:\n```json\n[{"Route":"A"},{"Route":"B"}]\n```\nEnjoy.'
    assert decode(text) == [{"Route": "A"}, {"Route": "B"}]


def test_single_object_is_wrapped() -> None:
    text = '```json\n{"name": "ISO 9001", "section": "4.1"}\n```'
    assert decode(text) == [{"name": "ISO 9001", "section": "4.1"}]


def test_unfenced_json_is_accepted() -> None:
    assert decode('  [{"a": 1}, {"a": 2}]  ') == [{"a": 1}, {"a": 2}]
    assert decode('{"a": 1}') == [{"a": 1}]


def test_first_fenced_block_wins_and_match_is_non_greedy() -> None:
    text = '```json\n[{"x": 1}]\n```\nand\n```json\n[{"y": 2}]\n```'
    assert decode(text) == [{"x": 1}]


def test_heterogeneous_array_passes_through() -> None:
    assert decode('[{"a": 1}, 2, "three"]') == [{"a": 1}, 2, "three"]


def test_unstructured_inputs_return_none() -> None:
    assert decode("") is None
    assert decode("Just some prose about flights.") is None
    assert decode('```json\n[{"Route": "A",}\n```') is None
    assert decode('```json\n{"unterminated": \n```') is None
    assert decode("```python\nprint('hi')\n```") is None


def test_empty_array_and_scalars_return_none() -> None:
    assert decode("```json\n[]\n```") is None
    assert decode("42") is None
    assert decode('"text"') is None
    assert decode("null") is None


def test_strip_json_block_keeps_surrounding_prose() -> None:
    text = 'Before\n```json\n[{"a": 1}]\n```\nAfter'
    assert strip_json_block(text) == "Before\n\nAfter"
    assert strip_json_block('[{"a": 1}]') == ""
