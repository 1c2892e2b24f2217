import random

from lyricquiz.choices import MAX_CHOICES, build_choices
from lyricquiz.models import Song


def _songs(n: int) -> list[Song]:
    return [Song(title=f"Song {i}", primary_artist_name=f"Artist {i}") for i in range(n)]


def test_labels_use_title_dash_artist():
    songs = _songs(2)
    choices = build_choices(songs[0], songs, random.Random(0))
    assert sorted(choices) == ["Song 0 - Artist 0", "Song 1 - Artist 1"]


def test_correct_label_appears_exactly_once():
    songs = _songs(10)
    for seed in range(30):
        choices = build_choices(songs[3], songs, random.Random(seed))
        assert choices.count(songs[3].label) == 1


def test_four_choices_for_large_pool():
    songs = _songs(10)
    for seed in range(30):
        choices = build_choices(songs[0], songs, random.Random(seed))
        assert len(choices) == MAX_CHOICES
        assert len(set(choices)) == MAX_CHOICES


def test_small_pool_gives_fewer_choices():
    songs = _songs(3)
    choices = build_choices(songs[1], songs, random.Random(0))
    assert len(choices) == 3


def test_correct_song_outside_pool_still_included():
    songs = _songs(3)
    outsider = Song(title="Elsewhere", primary_artist_name="Nobody")
    choices = build_choices(outsider, songs, random.Random(0))
    assert len(choices) == 4
    assert outsider.label in choices


def test_degenerate_pool_gives_single_choice():
    song = _songs(1)[0]
    assert build_choices(song, [song]) == [song.label]
    assert build_choices(song, []) == [song.label]


def test_empty_slots_are_skipped():
    songs = _songs(2)
    choices = build_choices(songs[0], [None, songs[0], None, songs[1]], random.Random(0))
    assert sorted(choices) == sorted([songs[0].label, songs[1].label])


def test_same_inputs_same_content():
    songs = _songs(4)
    first = build_choices(songs[2], songs, random.Random(1))
    second = build_choices(songs[2], songs, random.Random(2))
    assert sorted(first) == sorted(second)


def test_correct_label_position_varies():
    songs = _songs(8)
    positions = {build_choices(songs[0], songs, random.Random(seed)).index(songs[0].label)
                 for seed in range(40)}
    assert len(positions) > 1


def test_pool_is_not_mutated():
    songs = _songs(6)
    before = list(songs)
    build_choices(songs[0], songs, random.Random(0))
    assert songs == before


def test_twin_of_correct_song_is_not_a_distractor():
    songs = _songs(6)
    correct = songs[0]
    twin = Song(title=correct.title, primary_artist_name=correct.primary_artist_name,
                album_name="Greatest Hits")
    pool = [correct, twin] + songs[1:]
    for seed in range(50):
        choices = build_choices(correct, pool, random.Random(seed))
        assert choices.count(correct.label) == 1
        assert len(choices) == MAX_CHOICES
