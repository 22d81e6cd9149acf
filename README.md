# zbplugins

Reusable pieces for group chat-bot plugins. Each module does one job and
leaves the sending of messages and the fetching of web pages to you, so they
fit into any bot framework and any HTTP client.

## Install

```
pip install zbplugins
```

For running the tests:

```
pip install "zbplugins[test]"
pytest
```

## What is inside

| Module | Purpose |
| --- | --- |
| `zbplugins.timerspec` | `Timer` reminders whose month, day, weekday, hour and minute are packed into one integer; `filled_timer` parses Chinese date phrases such as "周三" / "八" / "三十", `filled_cron_timer` builds cron reminders, and `Timer.timer_id` derives a stable id. |
| `zbplugins.wakeup` | `next_wake_time(timer, now)` and `is_due(timer, now)` work out when a dated reminder wakes next and whether it fires; `first_week` finds the first given weekday of a month. |
| `zbplugins.clock` | `Clock` stores reminders in SQLite, runs each in a background thread and lists or cancels them; a fired reminder is handed to your `send(self_id, grp_id, segments)` callback. `CronSchedule` evaluates five-field cron expressions, and `alert_message` builds the message segments. |
| `zbplugins.midinotes` | Note parsing (`process_one`, `note_name`, `octave`), `make_midi` to write a MIDI file from text like `CCGGAAGR`, `midi_to_text` to read a track back, and the `ListeningPractice` ear-training game with its `PracticeMode`. `render_wav` calls the external `timidity` program. |
| `zbplugins.heisi` | Decodes packed ten-byte picture records into URLs (`load_items`, `item_url`, `pick_item`). |
| `zbplugins.hyaku` | Loads the Hyakunin Isshu CSV table into `Poem` objects; `image_names` gives a poem's picture file names. |
| `zbplugins.moyu` | `Holiday` countdowns, `parse_holiday` for stored "days_year_month_day" values, `weekend_message` and the full `daily_message`. |
| `zbplugins.gist` | Gist-based join verification (`gist_url`, `check_gist_timestamp`, `parse_join_answer`) and a SQLite `MemberStore`. |
| `zbplugins.jandan` | A SQLite `PictureStore` keyed by the CRC-64 (ISO) of the URL, see `picture_id`. |
| `zbplugins.lolicon` | Request URLs and answer parsing for a random picture API. |
| `zbplugins.setulib` | `SetuLibrary` indexes local picture folders into SQLite, one table per folder, keyed by `difference_hash`. |
| `zbplugins.webparse` | Parsing of illustration-search and slang-dictionary answers. |
| `zbplugins.cardsearch` | URL building and answer parsing for a Hearthstone card-search site. |
| `zbplugins.voiceurls` | Request URLs for Japanese, Korean and Chinese text-to-speech voices. |
| `zbplugins.textapis` | Request building and answer parsing for two small text services. |

## Example: a weekly reminder

```python
from datetime import datetime
from zbplugins.timerspec import filled_timer
from zbplugins.wakeup import next_wake_time

matched = ["", "每", "周三", "八", "三十", "", "stand-up meeting"]
timer = filled_timer(matched, 0, 123456, False)
print(timer.timer_info())
print(next_wake_time(timer, datetime.now()))
```

## Example: text to MIDI

```python
from zbplugins.midinotes import make_midi, midi_to_text

make_midi("song.mid", "CCGGAAGR FFEEDDCR", 40)
with open("song.mid", "rb") as fh:
    print(midi_to_text(fh.read(), 0))
```

`render_wav` needs `timidity` to be on `PATH`.

## What it does not do

- It does not connect to any chat service or parse chat commands; you match
  the messages and send the replies yourself.
- It makes no HTTP requests: the web helpers build URLs and request bodies and
  read the answers you fetch.
- It has no guess-the-song game and does not cut audio files.