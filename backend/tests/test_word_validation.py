import asyncio

import pytest

from wordbomb.dictionary import DictionaryLoadError, WordDictionary
from wordbomb.word_validation import ValidationReason, validate_word


def test_solo_valid_word_scores_five_per_letter(dictionary):
    result = validate_word('bakery', 'ER', [], dictionary)
    assert result.valid is True
    assert result.points == 30
    assert '+30 points' in result.message


def test_solo_short_word_is_rejected_on_length(dictionary):
    result = validate_word('it', 'ER', [], dictionary)
    assert result.valid is False
    assert result.reason == ValidationReason.TOO_SHORT
    assert result.message == 'Word must be at least 3 letters!'


def test_multiplayer_length_is_checked_before_combo(dictionary):
    result = validate_word('cat', 'TH', [], dictionary, multiplayer=True)
    assert result.valid is False
    assert result.reason == ValidationReason.TOO_SHORT
    assert result.message == 'Word must be at least 4 letters!'


def test_country_names_are_banned_even_if_in_dictionary(dictionary):
    assert dictionary.contains('france')
    result = validate_word('france', 'AN', [], dictionary)
    assert result.valid is False
    assert result.message == 'Country names are not allowed!'


def test_missing_combo_message_uses_upper_case(dictionary):
    result = validate_word('water', 'th', [], dictionary)
    assert result.reason == ValidationReason.MISSING_COMBO
    assert result.message == 'Word must contain "TH"!'


def test_used_words_compare_case_insensitively(dictionary):
    result = validate_word('  Mountain ', 'AI', ['MOUNTAIN'], dictionary, multiplayer=True)
    assert result.reason == ValidationReason.ALREADY_USED
    assert result.message == 'Word already used!'


def test_non_letters_are_rejected(dictionary):
    result = validate_word("there's", 'ER', [], dictionary)
    assert result.reason == ValidationReason.NOT_LETTERS
    assert result.message == 'Word must contain only letters!'


def test_unknown_word_is_rejected(dictionary):
    result = validate_word('zzzer', 'ER', [], dictionary)
    assert result.reason == ValidationReason.NOT_IN_DICTIONARY
    assert result.message == 'Not a valid English word!'


def test_unloaded_dictionary_fails_closed():
    result = validate_word('bakery', 'ER', [], WordDictionary())
    assert result.valid is False
    assert result.reason == ValidationReason.DICTIONARY_NOT_LOADED


def test_multiplayer_points_add_length_bonus(dictionary):
    result = validate_word('mountain', 'AI', [], dictionary, multiplayer=True, points_per_word=50)
    assert result.valid is True
    assert result.points == 50 + (8 - 4) * 5
    short = validate_word('here', 'ER', [], dictionary, multiplayer=True, points_per_word=50)
    assert short.points == 50


def test_validation_is_deterministic(dictionary):
    first = validate_word('thunder', 'ND', ['water'], dictionary)
    second = validate_word('thunder', 'ND', ['water'], dictionary)
    assert first == second


def test_dictionary_loads_once_for_concurrent_callers(tmp_path):
    words_file = tmp_path / 'words.txt'
    words_file.write_text('Bakery\nmountain\n\n  water  \n', encoding='utf-8')
    dictionary = WordDictionary(words_file)

    async def scenario():
        assert dictionary.status()['loaded'] is False
        first, second = await asyncio.gather(dictionary.load(), dictionary.load())
        return first, second

    first, second = asyncio.run(scenario())
    assert first is second
    assert dictionary.status() == {'loaded': True, 'loading': False, 'size': 3}
    assert dictionary.contains('BAKERY')


def test_dictionary_missing_file_raises_and_can_retry(tmp_path):
    dictionary = WordDictionary(tmp_path / 'missing.txt')

    async def scenario():
        with pytest.raises(DictionaryLoadError):
            await dictionary.load()
        (tmp_path / 'missing.txt').write_text('water\n', encoding='utf-8')
        return await dictionary.load()

    words = asyncio.run(scenario())
    assert words == frozenset({'water'})
