from pdca import selection_key


def test_selection_key_changes_with_page():
    first = selection_key("k2", 3, 2025, 1, 5)
    second = selection_key("k2", 3, 2025, 2, 5)

    assert first != second


def test_selection_key_changes_with_page_size_and_period():
    keys = {
        selection_key("k2", 3, 2025, 1, 5),
        selection_key("k2", 3, 2025, 1, 10),
        selection_key("k2", 3, 2025, 1, None),
        selection_key("k2", 4, 2025, 1, 5),
        selection_key("k3", 3, 2025, 1, 5),
    }

    assert len(keys) == 5


def test_selection_key_is_stable_for_same_view():
    assert selection_key("k1", 0, 2024, 3, 20) == selection_key("k1", 0, 2024, 3, 20)
