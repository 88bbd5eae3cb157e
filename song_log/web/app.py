from __future__ import annotations

from datetime import datetime
import logging

from flask import Flask, Response, flash, jsonify, redirect, render_template_string, request

from song_log.core.config import Settings, configure_logging, load_settings
from song_log.core.errors import StoreError
from song_log.core.identity import DuplicateStatus, KnownEntry, check_duplicate
from song_log.core.resolver import ResolveFailure, TrackResolver
from song_log.core.store import JsonLogStore, known_entries, new_entry, newest_first


logger = logging.getLogger(__name__)


HTML = """
<!doctype html>
<html lang="ja">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>Music Log</title>
    <style>
      body { font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; margin: 24px; max-width: 760px; background: #070A12; color: #E8ECFF; }
      h1 { margin: 0 0 8px; }
      .hint { color: #AAB4E6; margin: 0 0 16px; }
      label { display: block; font-weight: 600; margin: 12px 0 6px; }
      input[type="text"], input[type="url"], input[type="number"], textarea { width: 100%; padding: 10px; border: 1px solid #333a55; border-radius: 8px; background: #0d1220; color: inherit; box-sizing: border-box; }
      .row { display: grid; grid-template-columns: 1fr 1fr; gap: 12px; }
      .btn { margin-top: 14px; padding: 8px 14px; border: 1px solid #AAB4E6; border-radius: 10px; background: transparent; color: inherit; font-weight: 700; cursor: pointer; }
      .box { border: 1px solid #333a55; border-radius: 14px; padding: 14px; margin-bottom: 18px; }
      .flash { margin: 10px 0; padding: 10px 12px; border: 1px solid #AAB4E6; border-radius: 8px; }
      .small { font-size: 12px; color: #AAB4E6; }
      .item { display: flex; justify-content: space-between; gap: 12px; }
      .tag { display: inline-block; margin-right: 6px; padding: 1px 8px; border: 1px solid #333a55; border-radius: 99px; font-size: 12px; }
    </style>
  </head>
  <body>
    <h1>Music Log</h1>
    <p class="hint">一曲ずつ、夜の棚に並べていく。</p>

    {% with messages = get_flashed_messages() %}
      {% if messages %}
        {% for msg in messages %}
          <div class="flash">{{ msg }}</div>
        {% endfor %}
      {% endif %}
    {% endwith %}

    <form class="box" method="post" action="/add">
      <label>Apple Music share link</label>
      <input type="url" name="url" placeholder="https://music.apple.com/jp/album/...?i=...">
      <div class="small">Leave empty to log a song by hand. Title and artist below override what the link resolves to.</div>

      <div class="row">
        <div>
          <label>Title</label>
          <input type="text" name="title" placeholder="時をBABE">
        </div>
        <div>
          <label>Artist</label>
          <input type="text" name="artist" placeholder="ODD Foot Works">
        </div>
      </div>

      <div class="row">
        <div>
          <label>Tags (comma separated)</label>
          <input type="text" name="tags" placeholder="夜, 作業用">
        </div>
        <div>
          <label>Rating (0-5)</label>
          <input type="number" name="rating" value="3" min="0" max="5" step="1">
        </div>
      </div>

      <label>Note</label>
      <textarea name="note" rows="3"></textarea>

      <button class="btn" type="submit">Add</button>
    </form>

    {% for item in items %}
      <div class="box item">
        <div>
          <div><strong>{{ item.title }}</strong>{% if item.artist %} / {{ item.artist }}{% endif %}</div>
          <div class="small">{{ item.created_at | ts }} · {{ "★" * item.rating }}{{ "☆" * (5 - item.rating) }}</div>
          {% if item.tags %}<div>{% for tag in item.tags %}<span class="tag">{{ tag }}</span>{% endfor %}</div>{% endif %}
          {% if item.note %}<p>{{ item.note }}</p>{% endif %}
          {% if item.source_url %}<a class="small" href="{{ item.source_url }}">{{ item.source_url }}</a>{% endif %}
        </div>
        <form method="post" action="/delete/{{ item.id }}">
          <button class="btn" type="submit">Delete</button>
        </form>
      </div>
    {% else %}
      <p class="small">No songs logged yet.</p>
    {% endfor %}
    {% if items %}
      <form method="post" action="/clear" onsubmit="return confirm('全部消す？（このログが消えます）');">
        <button class="btn" type="submit">Clear all</button>
      </form>
    {% endif %}
  </body>
</html>
"""


def _format_ts(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _failure_message(failure: ResolveFailure) -> str:
    if failure.code == "missing_url":
        return "Paste a share link first."
    if failure.code == "unsupported_url":
        return "That link isn't an Apple Music share link."
    if failure.code == "fetch_failed":
        if failure.status is None:
            return "Couldn't reach the share page. Try again in a moment."
        return f"The share page returned HTTP {failure.status}."
    return "Something went wrong while reading the share page."


def create_app(
    settings: Settings | None = None,
    resolver: TrackResolver | None = None,
    store: JsonLogStore | None = None,
) -> Flask:
    settings = settings or load_settings()
    resolver = resolver or TrackResolver(settings)
    store = store or JsonLogStore(settings.store_path)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.jinja_env.filters["ts"] = _format_ts

    @app.get("/")
    def index() -> str:
        return render_template_string(HTML, items=newest_first(store.load()))

    def _save(entries: list) -> bool:
        try:
            store.save(entries)
        except StoreError as exc:
            logger.error("%s", exc)
            flash("Couldn't save the log. Check the log file location.")
            return False
        return True

    @app.post("/add")
    def add() -> Response:
        url = (request.form.get("url") or "").strip()
        title = (request.form.get("title") or "").strip()
        artist = (request.form.get("artist") or "").strip()

        if url:
            result = resolver.resolve(url)
            if isinstance(result, ResolveFailure):
                flash(_failure_message(result))
                return redirect("/")
            candidate = KnownEntry(
                track_id=result.track_id,
                title=title or result.title,
                artist=artist or result.artist,
            )
            source_url = result.source_url
        elif title and artist:
            candidate = KnownEntry(title=title, artist=artist)
            source_url = None
        else:
            flash("Paste a share link, or enter both a title and an artist.")
            return redirect("/")

        entries = store.load()
        status = check_duplicate(candidate, known_entries(entries))
        if status is DuplicateStatus.DUPLICATE:
            flash(f"Already in your log: {candidate.title}")
            return redirect("/")

        entry = new_entry(
            title=candidate.title or "",
            artist=candidate.artist or "",
            note=request.form.get("note") or "",
            tags=request.form.get("tags") or "",
            rating=request.form.get("rating") or 3,
            source_url=source_url,
            track_id=candidate.track_id,
        )
        if not _save([entry, *entries]):
            return redirect("/")

        if status is DuplicateStatus.UNCERTAIN:
            flash("Added, but the title and artist couldn't be read. It may already be logged.")
        return redirect("/")

    @app.post("/delete/<entry_id>")
    def delete(entry_id: str) -> Response:
        entries = store.load()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) != len(entries):
            _save(remaining)
        return redirect("/")

    @app.post("/clear")
    def clear() -> Response:
        if store.load() or store.damaged:
            _save([])
        return redirect("/")

    @app.get("/api/resolve")
    def api_resolve() -> tuple[Response, int]:
        result = resolver.resolve(request.args.get("url"))
        if isinstance(result, ResolveFailure):
            return jsonify(result.to_json()), result.http_status
        return jsonify(result.to_json()), 200

    return app


if __name__ == "__main__":
    _settings = load_settings()
    configure_logging(_settings.log_level)
    create_app(_settings).run(host="127.0.0.1", port=5000, debug=True)
