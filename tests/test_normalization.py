import pytest

from gamematch.utils.normalization import (
    GAME_ABBREVIATIONS,
    NormalizationOptions,
    batch_normalize,
    build_normalization_dictionary,
    find_equivalent_names,
    fold_text,
    normalize_game_name,
    validate_normalization_options,
)


def test_fold_text():
    assert fold_text("  Super   MARIO\tBros ") == "super mario bros"
    assert fold_text("  Super   MARIO ", case_sensitive=True) == "Super MARIO"
    assert fold_text(None) == ""


def test_normalize_full_pipeline():
    result = normalize_game_name("Super Mario Bros. 3 - Deluxe Ed.")
    assert result.normalized == "mario bros three deluxe"
    assert result.original == "Super Mario Bros. 3 - Deluxe Ed."
    for rule in ("remove_special_chars", "expand_abbreviations", "remove_stop_words", "normalize_numbers"):
        assert rule in result.applied_rules
    # Every recorded step chains into the next
    for prev, nxt in zip(result.steps, result.steps[1:]):
        assert prev.after == nxt.before


def test_stop_words_never_empty_the_name():
    assert normalize_game_name("The Game").normalized == "the"


def test_disabled_stages_leave_text_alone():
    opts = NormalizationOptions(
        remove_special_chars=False,
        normalize_casing=False,
        normalize_spaces=False,
        expand_abbreviations=False,
        remove_stop_words=False,
        normalize_numbers=False,
    )
    result = normalize_game_name("  Tetris 99: Battle! ", opts)
    assert result.normalized == "Tetris 99: Battle!"
    assert result.applied_rules == []


def test_extra_abbreviations_and_numbers():
    opts = NormalizationOptions(extra_abbreviations={"GTA": "Grand Theft Auto"})
    assert normalize_game_name("GTA 5", opts).normalized == "grand theft auto five"


def test_expansion_is_not_expanded_again():
    opts = NormalizationOptions(custom_replacements={"fps": "fps shooter"})
    assert normalize_game_name("Doom FPS", opts).normalized == "doom fps shooter"


def test_numbers_outside_one_to_ten_stay_digits():
    assert normalize_game_name("Tetris 99").normalized == "tetris 99"


def test_find_equivalent_names():
    names = ["Tetris Two", "tetris 2", "Tetris 3"]
    assert find_equivalent_names("Super Tetris 2", names) == ["Tetris Two", "tetris 2"]


def test_batch_and_dictionary():
    names = ["Pac-Man", "Tetris 2"]
    results = batch_normalize(names)
    assert [r.original for r in results] == names
    mapping = build_normalization_dictionary(names)
    assert mapping == {"Pac-Man": "pac man", "Tetris 2": "tetris two"}


def test_builtin_vocabulary_is_read_only():
    with pytest.raises(TypeError):
        GAME_ABBREVIATIONS["rpg"] = "something else"  # type: ignore[index]


def test_validate_normalization_options():
    assert validate_normalization_options({}) is True
    assert validate_normalization_options({"remove_stop_words": False, "extra_stop_words": ["demo"]}) is True
    assert validate_normalization_options({"remove_stop_words": "yes"}) is False
    assert validate_normalization_options({"unknown": True}) is False
    assert validate_normalization_options({"custom_replacements": {"a": 1}}) is False
    assert validate_normalization_options({"extra_stop_words": "demo"}) is False
    assert validate_normalization_options(["not", "a", "mapping"]) is False  # type: ignore[arg-type]


def test_options_from_dict():
    opts = NormalizationOptions.from_dict({"extra_stop_words": ["Demo"], "normalize_numbers": False})
    assert opts.extra_stop_words == frozenset({"demo"})
    assert normalize_game_name("Tetris Demo 2", opts).normalized == "tetris 2"
    with pytest.raises(ValueError):
        NormalizationOptions.from_dict({"normalize_numbers": "no"})


def test_combining_marks_survive_normalization():
    result = normalize_game_name("नमस्ते!")
    assert result.normalized == "नमस्ते"
    assert normalize_game_name("नमसत").normalized != result.normalized
