# pkmsync

`pkmsync` turns e-mail messages into Markdown notes for personal knowledge
management tools. It builds Gmail-style search queries from a configuration,
converts message objects into uniform items, groups items into threads, and
writes them out as notes for an Obsidian vault or pages for a Logseq graph.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `pkmsync.models` – dataclasses: `GmailMessage`, `MessagePart`,
  `MessagePartHeader`, `MessagePartBody`, `GmailSourceConfig`, `TaggingRule`,
  `Item`, `Thread`, `Attachment`, `Link`, `Attendee`, `FilePreview`.
- `pkmsync.query` – `build_query`, `build_query_with_range`,
  `build_complex_query`, `parse_duration`, `validate_query`, `QueryError`.
- `pkmsync.processor` – `ContentProcessor` for message bodies and attachments.
- `pkmsync.converter` – `from_gmail_message`, address parsing, tagging.
- `pkmsync.threads` – `ThreadProcessor` and `ThreadGroup`.
- `pkmsync.filenames` – `sanitize_filename`, `sanitize_thread_subject`.
- `pkmsync.obsidian`, `pkmsync.logseq` – the `ObsidianTarget` and
  `LogseqTarget` exporters.
- `pkmsync.syncer` – `Syncer`, `SyncOptions`, `SyncError`.
- `pkmsync.mock` – `MockService`, an in-memory mailbox with sample messages.

## Building a search query

```python
from datetime import datetime, timezone

from pkmsync.models import GmailSourceConfig
from pkmsync.query import build_query, validate_query

config = GmailSourceConfig(
    labels=["IMPORTANT"],
    from_domains=["example.com"],
    include_unread=True,
)
query = build_query(config, datetime(2024, 1, 1, tzinfo=timezone.utc))
# "after:2024/01/01 label:IMPORTANT (from:example.com) is:unread"
validate_query(query)  # raises QueryError on unbalanced parentheses
```

`build_query` also takes an optional `now` argument, used with
`max_email_age` and `min_email_age`. Those ages are read by
`parse_duration`, which accepts a number followed by a unit: `m`/`min`
(minutes), `h`/`hr`, `d`, `w`, `mo` (30 days) or `y` (365 days), plus long
forms such as `minutes`, `hours`, `days`. Invalid ages are ignored by
`build_query`; `parse_duration` itself raises `QueryError`.

`build_complex_query(config, criteria)` adds terms from a mapping with the
keys `from`, `to`, `subject`, `newer_than`, `older_than` (strings) and
`has_attachment`, `is_important`, `is_starred` (booleans).

## Converting messages

```python
from pkmsync.converter import from_gmail_message

item = from_gmail_message(message, config)
print(item.title, item.tags)
```

The item's content is the HTML body if there is one, else the plain-text
body, else the snippet. Its date comes from the `Date` header, or from
`internal_date` (milliseconds); without either, `ConversionError` is raised,
as it is for a `None` message.

Metadata always holds `message_id`, `thread_id`, `labels`, `snippet` and
`size` (and `reply_to` when present). With `extract_recipients` it also
holds `from`, `to`, `cc` and `bcc` as `EmailRecipient` values; with
`include_full_headers`, a `headers` mapping with lower-cased names.

Tags start with `gmail`, then one per label (system labels such as
`IMPORTANT` become `important`), then the tags of every matching
`TaggingRule`, then `source:<name>` when the config has a name. Rule
conditions may be `from:…`, `subject:…`, `label:…` or `has:attachment`.

With `download_attachments`, attachments are listed and filtered by
`attachment_types` (file extensions). If a `service` object is passed, its
`get_attachment(message_id, attachment_id)` is called and the returned
base64 `data` is stored on each attachment; failed downloads are logged and
skipped.

## Threads

```python
from pkmsync.threads import ThreadProcessor

items = ThreadProcessor(config).process_threads(items)
```

When `include_threads` is set, `thread_mode` chooses the result:
`individual` (or empty) keeps items as they are, `consolidated` turns each
multi-message thread into one item with every message, and `summary` keeps
the first, last and highest-scoring messages up to `thread_summary_length`
(default 5). Any other mode raises `ValueError`.

## Exporting

```python
from pkmsync.obsidian import ObsidianTarget
from pkmsync.syncer import Syncer, SyncOptions

target = ObsidianTarget()
Syncer().sync(source, target, SyncOptions(output_dir="vault/Inbox"))
```

A source for `Syncer` is any object with a `name` attribute and a
`fetch(since, limit)` method; a target has `name` and
`export(items, output_dir)`. An optional pipeline passed to
`Syncer(pipeline)` must offer `transform(items)`. Failures are raised as
`SyncError`. With `dry_run=True`, items are fetched and transformed but not
exported.

`ObsidianTarget` writes YAML front matter (attendees become `[[wiki
links]]`) and renders `Thread` items with their messages. `LogseqTarget`
writes Logseq block properties. Both offer `preview(items, output_dir)`,
which returns a `FilePreview` per item saying whether the file would be
created, updated or skipped, without writing anything.

## Sample mailbox

`pkmsync.mock.MockService(config)` serves four sample messages, filtered by
the config's `labels`, `from_domains` and `exclude_from_domains`. It also
has labels, a profile, `validate_configuration()`, `add_test_message()` and
`clear_messages()`.

## What it does not do

- It does not connect to a mail account or handle sign-in: messages must be
  supplied as `GmailMessage` objects by your own code (or by `MockService`).
- It has no command-line program; it is used as a library.
- It ships no transformation pipeline; `Syncer` only calls one you provide.
- It has no calendar or document sources.