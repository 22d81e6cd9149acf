"""Note-letter melodies to MIDI and back, plus the ear-training game."""

from __future__ import annotations

import io
import math
import os
import random
import re
import subprocess
from dataclasses import dataclass, field
from enum import Enum

import mido

NOTE_MAP: dict[str, int] = {
    "C": 60,
    "Db": 61,
    "D": 62,
    "Eb": 63,
    "E": 64,
    "F": 65,
    "Gb": 66,
    "G": 67,
    "Ab": 68,
    "A": 69,
    "Bb": 70,
    "B": 71,
}

DEFAULT_TIMBRE = 40
TICKS_PER_QUARTER = 960
TEMPO_BPM = 72
NOTE_VELOCITY = 120
QUESTIONS = 5
REPLY_PATTERN = re.compile(r"[A-G][b|#]?\d{0,2}")

_BYTE = 0xFF
_WORD = 0xFFFFFFFF
_INT = re.compile(r"[+-]?[0-9]+")


def octave(base: int, oct: int) -> int:
    """Place a pitch class in an octave (capped at 10), keeping it at most 127."""
    oct &= _BYTE
    base &= _BYTE
    if oct > 10:
        oct = 10
    if oct == 0:
        return base
    res = (base + 12 * oct) & _BYTE
    if res > 127:
        res -= 12
    return res


def note_name(n: int) -> str:
    """Letter name of a MIDI note's pitch class, flats spelled with "b"."""
    for name, value in NOTE_MAP.items():
        if value % 12 == n % 12:
            return name
    return ""


def process_one(note: str) -> int:
    """MIDI number of a single note such as "C#6"; the octave defaults to 5."""
    base = 0
    level = 0
    for c in note.replace(" ", ""):
        if "A" <= c <= "G":
            base = NOTE_MAP[c] % 12
        elif c == "b":
            base = (base - 1) & _BYTE
        elif c == "#":
            base = (base + 1) & _BYTE
        elif "0" <= c <= "9":
            level = (level * 10 + int(c)) & _BYTE
    if level == 0:
        level = 5
    return octave(base, level)


def validate_timbre(timbre: int) -> int:
    """Check that a General MIDI program number lies in 0..127."""
    if timbre < 0 or timbre > 127:
        raise ValueError("音色应该在0~127之间")
    return int(timbre)


def _atoi(text: str) -> int:
    return int(text) if _INT.fullmatch(text) else 0


def _duration(length: int) -> int:
    if length >= 0:
        factor = (1 << length) & _WORD if length < 32 else 0
        return (TICKS_PER_QUARTER * factor) & _WORD
    if -length >= 32:
        raise ValueError(f"note length out of range: {length}")
    return TICKS_PER_QUARTER // (1 << -length)


def _build_track(text: str, timbre: int) -> mido.MidiTrack:
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(TEMPO_BPM), time=0))
    track.append(mido.MetaMessage("instrument_name", name="Violin", time=0))
    track.append(mido.Message("program_change", channel=0, program=timbre, time=0))

    k = text.replace(" ", "")
    i = 0
    delay = 0
    while i < len(k):
        base = 0
        level = 0
        rest = False
        length_chars: list[str] = []
        while True:
            c = k[i]
            if c == "R":
                rest = True
                i += 1
            elif "A" <= c <= "G":
                base = NOTE_MAP[c] % 12
                i += 1
            elif c == "b":
                base = (base - 1) & _BYTE
                i += 1
            elif c == "#":
                base = (base + 1) & _BYTE
                i += 1
            elif "0" <= c <= "9":
                level = (level * 10 + int(c)) & _BYTE
                i += 1
            elif c == "<":
                i += 1
                while i < len(k) and (k[i] == "-" or "0" <= k[i] <= "9"):
                    length_chars.append(k[i])
                    i += 1
            else:
                raise ValueError(f"无法解析第{i}个位置的{c}字符")
            if i >= len(k) or "A" <= k[i] <= "G" or k[i] == "R":
                break
        length = _atoi("".join(length_chars))
        if rest:
            delay = _duration(length)
            continue
        if level == 0:
            level = 5
        pitch = octave(base, level)
        track.append(mido.Message("note_on", channel=0, note=pitch, velocity=NOTE_VELOCITY, time=delay))
        track.append(mido.Message("note_off", channel=0, note=pitch, velocity=0, time=_duration(length)))
        delay = 0
    track.append(mido.MetaMessage("end_of_track", time=0))
    return track


def make_midi(file_path: str, text: str, timbre: int = DEFAULT_TIMBRE) -> None:
    """Write ``text`` as a one-track MIDI file; an existing file is left alone.

    Notes are letters A-G with optional b/# and octave digits, R is a rest and
    "<n" sets the length to 2**n quarter notes. Bad input raises ValueError.
    """
    if os.path.exists(file_path):
        return
    track = _build_track(text, validate_timbre(timbre))
    midi = mido.MidiFile(type=0, ticks_per_beat=TICKS_PER_QUARTER)
    midi.tracks.append(track)
    midi.save(file_path)


def _round_half_away(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def _power(length: float) -> int | None:
    if length <= 0:
        return None
    return _round_half_away(math.log2(length))


def midi_to_text(data: bytes, track_no: int) -> str:
    """Describe one track of a MIDI file in the note-letter notation.

    Unreadable data and missing tracks give an empty string.
    """
    try:
        midi = mido.MidiFile(file=io.BytesIO(data))
    except (OSError, ValueError, EOFError, KeyError, IndexError):
        return ""
    if not 0 <= track_no < len(midi.tracks):
        return ""

    out: list[str] = []
    start = 0.0
    end = 0.0
    start_note = 0
    end_note = 0
    ticks = 0
    for msg in midi.tracks[track_no]:
        ticks += msg.time
        if msg.is_meta:
            continue
        note_on = msg.type == "note_on"
        sounding = note_on and msg.velocity > 0
        if sounding:
            start = float(ticks)
            start_note = msg.note
        if msg.type == "note_off" or (note_on and msg.velocity == 0):
            end = float(ticks)
            end_note = msg.note
            if start_note == end_note:
                out.append(note_name(msg.note))
                level = msg.note // 12
                if level != 5:
                    out.append(str(level))
                pow_ = _power((end - start) / TICKS_PER_QUARTER)
                if pow_ is not None and pow_ >= -4 and pow_ != 0:
                    out.append(f"<{pow_}")
                start_note = 0
                end_note = 0
        if sounding and start > end:
            pow_ = _power((start - end) / TICKS_PER_QUARTER)
            if pow_ == 0:
                out.append("R")
            elif pow_ is not None and pow_ >= -4:
                out.append(f"R<{pow_}")
    return "".join(out)


def render_wav(midi_file: str, text: str, timbre: int = DEFAULT_TIMBRE) -> str:
    """Write the MIDI file and render it to WAV with timidity; returns the WAV path."""
    make_midi(midi_file, text, timbre)
    wav_file = midi_file.replace(".mid", ".wav")
    subprocess.run(["timidity", midi_file, "-Ow", "-o", wav_file], check=True)
    return wav_file


class PracticeMode(Enum):
    """Who may answer: the starter alone, or the whole group."""

    PERSONAL = "个人"
    TEAM = "团队"

    @property
    def max_errors(self) -> int:
        return 3 if self is PracticeMode.PERSONAL else 10


class Verdict(Enum):
    CORRECT = "correct"
    WRONG = "wrong"
    FAILED = "failed"


@dataclass(frozen=True)
class Submission:
    """Outcome of one reply: the verdict on the current question."""

    verdict: Verdict
    guess: int
    answer: str
    error_count: int
    finished: bool


@dataclass
class ListeningPractice:
    """Five questions naming a played note; scores are kept per user."""

    mode: PracticeMode
    rng: random.Random | None = None
    scores: dict[int, float] = field(default_factory=dict)
    round: int = 1
    error_count: int = 0
    target: int = 0
    answer: str = ""

    def __init__(self, mode: PracticeMode, rng: random.Random | None = None):
        self.mode = mode
        self.rng = rng if rng is not None else random.Random()
        self.scores = {}
        self.round = 1
        self.error_count = 0
        self._new_question()

    def _new_question(self) -> None:
        self.target = 55 + self.rng.randrange(34)
        self.answer = note_name(self.target) + str(self.target // 12)

    def finished(self) -> bool:
        return self.round == QUESTIONS + 1

    def _award(self, user_id: int) -> None:
        if self.mode is PracticeMode.PERSONAL:
            points = {0: 1.0, 1: 0.5, 2: 0.2}.get(self.error_count)
        else:
            points = 1.0 if self.error_count != self.mode.max_errors else None
        if points is not None:
            self.scores[user_id] = self.scores.get(user_id, 0.0) + points

    def submit(self, user_id: int, reply: str) -> Submission:
        """Judge a reply such as "C#6" against the current question."""
        if self.finished():
            raise RuntimeError("the practice is already over")
        if not REPLY_PATTERN.fullmatch(reply):
            raise ValueError(f"not a note: {reply!r}")
        guess = process_one(reply)
        answer = self.answer
        correct = guess == self.target
        if not correct:
            self.error_count += 1
        if correct or self.error_count == self.mode.max_errors:
            verdict = Verdict.CORRECT if correct else Verdict.FAILED
            errors = self.error_count
            self._award(user_id)
            self.round += 1
            if not self.finished():
                self.error_count = 0
                self._new_question()
            return Submission(verdict, guess, answer, errors, self.finished())
        return Submission(Verdict.WRONG, guess, answer, self.error_count, self.finished())