#!/usr/bin/env python3
"""
tracker_web.py

Single-file local web app (Flask) for tracking a family's progress through the
604-page mushaf.

Features:
- Participant list sorted by progress (leader / second / behind badges)
- Page, juz and surah (English + Arabic) for every participant
- Add / update page / delete participants
- Section lookup API for any page
- Last list cached in the browser (localStorage) for instant redraw
- Data kept in a flat JSON file
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, jsonify, render_template_string, request
from flask_cors import CORS

import tracker_config
from quran_pages import TOTAL_PAGES, all_sections, derive, find_section, juz_for_page, progress_percent, rank
from reader_store import ReaderStore, RecordNotFound, ValidationError, clean_name, parse_page
from tracker_log import setup_logging

logger = logging.getLogger(__name__)


def error_response(message: str, status: int):
    return jsonify({"error": message}), status


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def section_payload(page: int) -> Dict[str, Any]:
    section = find_section(page)
    return {
        "page": page,
        "juz": juz_for_page(page),
        "surah": section.name,
        "surahArabic": section.arabic,
        "sectionIndex": section.index,
        "sectionStart": section.start,
        "sectionEnd": section.end,
        "progress": progress_percent(page),
    }


HTML_PAGE = r"""
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{{ title }}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <style>
    :root {
      --bg: #0f1115;
      --panel: #181c24;
      --panel2: #202633;
      --text: #e8edf5;
      --muted: #9fb0c8;
      --accent: #3fbf8f;
      --gold: #ffd54d;
      --danger: #ff5c5c;
      --line: #2e3645;
      --sans-font: Inter, system-ui, -apple-system, "Segoe UI", Roboto, sans-serif;
      --arabic-font: "Amiri", "Scheherazade New", "Noto Naskh Arabic", serif;
    }
    * { box-sizing: border-box; }
    body {
      margin: 0;
      background: var(--bg);
      color: var(--text);
      font-family: var(--sans-font);
    }
    .app-container { max-width: 760px; margin: 0 auto; padding: 18px; }
    .header { text-align: center; margin-bottom: 18px; }
    .title { font-size: 1.7rem; font-weight: 700; }
    .calligraphy { font-family: var(--arabic-font); font-size: 1.3rem; color: var(--gold); margin-top: 6px; }
    .toolbar {
      display: flex; gap: 8px; margin-bottom: 14px;
      background: var(--panel); border: 1px solid var(--line); border-radius: 10px; padding: 10px;
    }
    .toolbar input { flex: 1; }
    input {
      background: var(--panel2); color: var(--text);
      border: 1px solid var(--line); border-radius: 8px; padding: 8px 10px; font-size: 1rem;
    }
    button {
      background: var(--accent); color: #0b0d10; border: 0; border-radius: 8px;
      padding: 8px 14px; font-weight: 600; cursor: pointer;
    }
    button.danger { background: transparent; color: var(--danger); border: 1px solid var(--danger); }
    .card {
      background: var(--panel); border: 1px solid var(--line); border-radius: 12px;
      padding: 14px 16px; margin-bottom: 12px;
    }
    .card.leader { border-color: var(--gold); }
    .card.lagger { opacity: 0.9; border-style: dashed; }
    .card h2 { margin: 0 0 8px; font-size: 1.25rem; }
    .card p { margin: 4px 0; color: var(--muted); }
    .card p strong { color: var(--text); }
    .surah-arabic { font-family: var(--arabic-font); color: var(--text); }
    .progress-container { background: var(--panel2); border-radius: 6px; height: 10px; margin: 10px 0 6px; overflow: hidden; }
    .progress-bar { background: var(--accent); height: 100%; }
    .badge { margin-left: 10px; }
    .row { display: flex; gap: 8px; margin-top: 8px; }
    .row input { flex: 1; }
    .status { color: var(--muted); font-size: 0.9rem; min-height: 1.2em; margin-bottom: 10px; }
    .status.error { color: var(--danger); }
  </style>
</head>
<body>
<div class="app-container">
  <header class="header">
    <div class="title">📖 {{ title }}</div>
    <div class="calligraphy">القرآن الكريم — متابعة العائلة</div>
  </header>

  <form id="addForm" class="toolbar">
    <input id="newName" type="text" placeholder="Add a participant" autocomplete="off" />
    <button type="submit">Add</button>
  </form>

  <div id="status" class="status"></div>
  <div id="cards"></div>
</div>

<script>
(() => {
  const TOTAL_PAGES = {{ total_pages }};
  const CACHE_KEY = "quranTracker.users";

  const els = {
    cards: document.getElementById("cards"),
    status: document.getElementById("status"),
    addForm: document.getElementById("addForm"),
    newName: document.getElementById("newName"),
  };

  function setStatus(msg, isError) {
    els.status.textContent = msg || "";
    els.status.classList.toggle("error", !!isError);
  }

  function escapeHtml(s) {
    return String(s == null ? "" : s)
      .replace(/&/g, "&amp;").replace(/</g, "&lt;").replace(/>/g, "&gt;")
      .replace(/"/g, "&quot;").replace(/'/g, "&#39;");
  }

  function readCache() {
    try {
      const raw = localStorage.getItem(CACHE_KEY);
      return raw ? JSON.parse(raw) : null;
    } catch (e) {
      return null;
    }
  }

  function writeCache(users) {
    try {
      localStorage.setItem(CACHE_KEY, JSON.stringify(users));
    } catch (e) {
      // storage full or disabled
    }
  }

  async function api(method, path, body) {
    const opts = { method, headers: {} };
    if (body !== undefined) {
      opts.headers["Content-Type"] = "application/json";
      opts.body = JSON.stringify(body);
    }
    const res = await fetch(path, opts);
    const data = await res.json().catch(() => ({}));
    if (!res.ok) throw new Error(data.error || ("Request failed (" + res.status + ")"));
    return data;
  }

  function renderCard(user) {
    const prog = Number(user.progress) || 0;
    const classes = ["card"];
    if (user.isLeader) classes.push("leader");
    if (user.isLagger) classes.push("lagger");

    let badges = "";
    if (user.isLeader) badges += '<span class="badge">🏆 Leader</span>';
    if (user.isSecond) badges += '<span class="badge" title="Second place">🥈 2nd</span>';
    if (user.isLagger) badges += '<span class="badge">🐢 Behind</span>';

    return (
      '<div class="' + classes.join(" ") + '" data-id="' + escapeHtml(user.id) + '">' +
        "<h2>" + escapeHtml(user.name) + "</h2>" +
        '<p>📖 Page - صفحة&nbsp; <span dir="ltr">' + escapeHtml(user.currentPage) + "</span></p>" +
        '<p>📍 Juz - جزء&nbsp; <span dir="ltr">' + escapeHtml(user.juz) + "</span></p>" +
        "<p>📌 Surah : <strong>" + escapeHtml(user.surah) + "</strong> &nbsp;-&nbsp; سورة : " +
          '<span class="surah-arabic">— ' + escapeHtml(user.surahArabic) + "</span></p>" +
        '<div class="progress-container"><div class="progress-bar" style="width:' + prog + '%"></div></div>' +
        "<p>Progress: <strong>" + prog.toFixed(1) + "%</strong>" + badges + "</p>" +
        '<div class="row">' +
          '<input type="number" class="page-input" min="1" max="' + TOTAL_PAGES + '" placeholder="Enter page number" />' +
          '<button type="button" data-action="save">Save</button>' +
          '<button type="button" class="danger" data-action="delete">Delete</button>' +
        "</div>" +
      "</div>"
    );
  }

  function render(users) {
    if (!users || !users.length) {
      els.cards.innerHTML = '<p class="status">No participants yet.</p>';
      return;
    }
    els.cards.innerHTML = users.map(renderCard).join("");
  }

  async function refresh() {
    try {
      const users = await api("GET", "/users");
      writeCache(users);
      render(users);
      setStatus("");
    } catch (e) {
      setStatus("Could not load participants: " + e.message, true);
    }
  }

  async function savePage(id, input) {
    const page = Number(input.value);
    if (!Number.isInteger(page) || page < 1 || page > TOTAL_PAGES) {
      setStatus("Page must be between 1 and " + TOTAL_PAGES, true);
      return;
    }
    try {
      await api("PUT", "/users/" + id, { currentPage: page });
      await refresh();
    } catch (e) {
      setStatus(e.message, true);
    }
  }

  async function removeUser(id, name) {
    if (!confirm("Remove " + name + "?")) return;
    try {
      await api("DELETE", "/users/" + id);
      await refresh();
    } catch (e) {
      setStatus(e.message, true);
    }
  }

  els.cards.addEventListener("click", (ev) => {
    const btn = ev.target.closest("button[data-action]");
    if (!btn) return;
    const card = btn.closest(".card");
    const id = card.dataset.id;
    if (btn.dataset.action === "save") {
      savePage(id, card.querySelector(".page-input"));
    } else if (btn.dataset.action === "delete") {
      removeUser(id, card.querySelector("h2").textContent);
    }
  });

  els.addForm.addEventListener("submit", async (ev) => {
    ev.preventDefault();
    const name = els.newName.value.trim();
    if (!name) {
      setStatus("Name required", true);
      return;
    }
    try {
      await api("POST", "/users", { name });
      els.newName.value = "";
      await refresh();
    } catch (e) {
      setStatus(e.message, true);
    }
  });

  const cached = readCache();
  if (cached) render(cached);
  refresh();
})();
</script>
</body>
</html>
"""


def create_app(store: Optional[ReaderStore] = None, data_file: Optional[Path] = None) -> Flask:
    """Create the Flask app around a record store (loaded from disk if not given)."""
    app = Flask(__name__)
    app.json.ensure_ascii = False
    CORS(app)

    if store is None:
        store = ReaderStore(data_file or tracker_config.DATA_FILE)

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return error_response(str(e), 400)

    @app.errorhandler(RecordNotFound)
    def handle_not_found(e):
        return error_response(str(e), 404)

    @app.route("/", methods=["GET"])
    def index():
        return render_template_string(HTML_PAGE, title=tracker_config.APP_TITLE, total_pages=TOTAL_PAGES)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "users": len(store)})

    @app.route("/users", methods=["GET"])
    def list_users():
        return jsonify(rank(store.list()))

    @app.route("/users/<user_id>", methods=["GET"])
    def get_user(user_id):
        user = store.get(user_id)
        if user is None:
            raise RecordNotFound(user_id)
        return jsonify(derive(user))

    @app.route("/users", methods=["POST"])
    def create_user():
        data = json_body()
        user = store.create(data.get("name"))
        return jsonify(user), 201

    @app.route("/users/<user_id>", methods=["PUT"])
    def update_user(user_id):
        data = json_body()
        user = store.get(user_id)
        if user is None:
            raise RecordNotFound(user_id)
        if "currentPage" not in data and "name" not in data:
            return error_response("Nothing to update (expected currentPage or name)", 400)

        # validate both fields before touching the record
        page = parse_page(data["currentPage"]) if "currentPage" in data else None
        name = clean_name(data["name"]) if "name" in data else None

        if name is not None:
            user = store.rename(user_id, name)
        if page is not None:
            user = store.update(user_id, page)
        return jsonify(user)

    @app.route("/users/<user_id>", methods=["DELETE"])
    def delete_user(user_id):
        return jsonify(store.delete(user_id))

    @app.route("/sections", methods=["GET"])
    def list_sections():
        return jsonify([section._asdict() for section in all_sections()])

    @app.route("/sections/<page>", methods=["GET"])
    def get_section(page):
        try:
            number = int(page)
        except ValueError:
            return error_response("Page must be a whole number", 400)
        if number < 1 or number > TOTAL_PAGES:
            return error_response(f"Page must be between 1 and {TOTAL_PAGES}", 400)
        return jsonify(section_payload(number))

    return app


def main() -> None:
    parser = argparse.ArgumentParser(description=tracker_config.APP_TITLE)
    parser.add_argument("--host", default=tracker_config.HOST, help="Interface to bind")
    parser.add_argument("--port", type=int, default=tracker_config.PORT, help="Port to listen on")
    parser.add_argument("--data-file", type=Path, default=tracker_config.DATA_FILE, help="JSON file holding participants")
    parser.add_argument("--debug", action="store_true", help="Run Flask in debug mode")
    args = parser.parse_args()

    setup_logging("DEBUG" if args.debug else tracker_config.LOG_LEVEL, tracker_config.LOG_FILE)

    app = create_app(data_file=args.data_file)
    logger.info("Starting %s on http://%s:%s", tracker_config.APP_TITLE, args.host, args.port)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
