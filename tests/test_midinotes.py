import subprocess
from unittest import mock

import mido
import pytest

from zbplugins.midinotes import (
    ListeningPractice,
    PracticeMode,
    Verdict,
    make_midi,
    midi_to_text,
    note_name,
    octave,
    process_one,
    render_wav,
    validate_timbre,
)


class _Seq:
    def __init__(self, values):
        self._it = iter(values)

    def randrange(self, n):
        value = next(self._it)
        assert 0 <= value < n
        return value


def _wrong_reply(target):
    other = target + 1
    return note_name(other) + str(other // 12)


def test_note_names_from_map():
    assert note_name(60) == "C"
    assert note_name(61) == "Db"
    assert note_name(71) == "B"


def test_note_name_roundtrips_pitch_class():
    for n in range(128):
        assert process_one(note_name(n)) % 12 == n % 12


def test_process_one_defaults_to_octave_five():
    assert process_one("C") == 60
    assert process_one("C5") == 60
    assert process_one("D") == 62
    assert process_one("C#") == process_one("Db")


def test_octave_never_exceeds_127():
    for base in range(12):
        for oct_ in range(1, 20):
            assert 0 <= octave(base, oct_) <= 127


def test_octave_caps_at_ten():
    for base in range(12):
        assert octave(base, 15) == octave(base, 10)
    assert octave(7, 0) == 7


def test_validate_timbre():
    assert validate_timbre(0) == 0
    assert validate_timbre(127) == 127
    with pytest.raises(ValueError):
        validate_timbre(128)
    with pytest.raises(ValueError):
        validate_timbre(-1)


def test_make_midi_contents(tmp_path):
    path = tmp_path / "song.mid"
    make_midi(str(path), "C D E", 40)
    midi = mido.MidiFile(str(path))
    assert midi.ticks_per_beat == 960
    msgs = list(midi.tracks[0])
    programs = [m.program for m in msgs if m.type == "program_change"]
    assert programs == [40]
    tempos = [m.tempo for m in msgs if m.type == "set_tempo"]
    assert tempos == [mido.bpm2tempo(72)]
    notes = [m.note for m in msgs if m.type == "note_on"]
    assert notes == [60, 62, 64]


def test_make_midi_rejects_bad_character(tmp_path):
    path = tmp_path / "bad.mid"
    with pytest.raises(ValueError):
        make_midi(str(path), "CX", 40)
    assert not path.exists()


def test_make_midi_keeps_existing_file(tmp_path):
    path = tmp_path / "kept.mid"
    path.write_bytes(b"junk")
    make_midi(str(path), "CDE", 40)
    assert path.read_bytes() == b"junk"


def test_make_midi_rejects_bad_timbre(tmp_path):
    with pytest.raises(ValueError):
        make_midi(str(tmp_path / "t.mid"), "C", 200)


@pytest.mark.parametrize(
    "text",
    ["CDE", "CRD", "RC", "C<1", "C<-1", "C6", "CCGGAAGR"],
)
def test_midi_text_roundtrip(tmp_path, text):
    path = tmp_path / "r.mid"
    make_midi(str(path), text, 40)
    assert midi_to_text(path.read_bytes(), 0) == text


def test_sharp_reads_back_as_flat(tmp_path):
    path = tmp_path / "s.mid"
    make_midi(str(path), "C#", 40)
    assert midi_to_text(path.read_bytes(), 0) == note_name(process_one("C#"))


def test_midi_to_text_missing_track_and_bad_data(tmp_path):
    path = tmp_path / "m.mid"
    make_midi(str(path), "CDE", 40)
    assert midi_to_text(path.read_bytes(), 3) == ""
    assert midi_to_text(b"not midi", 0) == ""


def test_render_wav_runs_timidity(tmp_path):
    midi_path = str(tmp_path / "x.mid")
    with mock.patch("subprocess.run") as run:
        wav = render_wav(midi_path, "CDE", 40)
    assert wav == str(tmp_path / "x.wav")
    run.assert_called_once_with(["timidity", midi_path, "-Ow", "-o", wav], check=True)
    assert (tmp_path / "x.mid").exists()


def test_render_wav_propagates_failure(tmp_path):
    midi_path = str(tmp_path / "y.mid")
    err = subprocess.CalledProcessError(1, "timidity")
    with mock.patch("subprocess.run", side_effect=err):
        with pytest.raises(subprocess.CalledProcessError):
            render_wav(midi_path, "C", 40)


def test_render_wav_bad_text(tmp_path):
    with mock.patch("subprocess.run") as run:
        with pytest.raises(ValueError):
            render_wav(str(tmp_path / "z.mid"), "Q", 40)
    run.assert_not_called()


def test_answers_match_targets_for_every_question():
    for v in range(34):
        p = ListeningPractice(PracticeMode.PERSONAL, _Seq([v]))
        assert p.target == 55 + v
        assert p.answer == note_name(p.target) + str(p.target // 12)
        assert process_one(p.answer) == p.target


def test_personal_full_game():
    p = ListeningPractice(PracticeMode.PERSONAL, _Seq([0, 1, 2, 3, 4]))
    for i in range(5):
        answer = p.answer
        result = p.submit(7, answer)
        assert result.verdict is Verdict.CORRECT
        assert result.answer == answer
        assert result.finished == (i == 4)
    assert p.finished()
    assert p.scores == {7: 5.0}
    with pytest.raises(RuntimeError):
        p.submit(7, "C5")


def test_personal_partial_scores():
    p = ListeningPractice(PracticeMode.PERSONAL, _Seq([0, 1, 2, 3, 4]))
    wrong = p.submit(1, _wrong_reply(p.target))
    assert wrong.verdict is Verdict.WRONG
    assert wrong.error_count == 1
    assert p.submit(1, p.answer).verdict is Verdict.CORRECT
    assert p.scores == {1: 0.5}
    assert p.round == 2

    p.submit(1, _wrong_reply(p.target))
    p.submit(1, _wrong_reply(p.target))
    assert p.submit(1, p.answer).verdict is Verdict.CORRECT
    assert p.scores == {1: 0.5 + 0.2}


def test_personal_three_errors_fail_the_question():
    p = ListeningPractice(PracticeMode.PERSONAL, _Seq([0, 1, 2, 3, 4]))
    first = p.target
    results = [p.submit(2, _wrong_reply(p.target)) for _ in range(3)]
    assert [r.verdict for r in results] == [Verdict.WRONG, Verdict.WRONG, Verdict.FAILED]
    assert results[-1].error_count == 3
    assert p.scores == {}
    assert p.round == 2
    assert p.target == first + 1
    assert p.error_count == 0


def test_team_mode_allows_more_errors():
    p = ListeningPractice(PracticeMode.TEAM, _Seq([0, 1, 2, 3, 4]))
    for _ in range(3):
        assert p.submit(3, _wrong_reply(p.target)).verdict is Verdict.WRONG
    assert p.submit(4, p.answer).verdict is Verdict.CORRECT
    assert p.scores == {4: 1.0}


def test_invalid_reply_rejected():
    p = ListeningPractice(PracticeMode.PERSONAL, _Seq([0]))
    with pytest.raises(ValueError):
        p.submit(1, "H")
    assert p.error_count == 0
    assert p.round == 1