"""Daily game, practice mode, history and JSON endpoints."""

from __future__ import annotations

import uuid
from typing import Callable, Optional

from flask import Blueprint, flash, jsonify, redirect, render_template, request, session, url_for

from pokedex import PokedexError, get_pokedex_service

from . import service
from .service import DailyServiceError, Player

UserProvider = Callable[[], Optional[dict]]

DEVICE_SESSION_KEY = "device_id"
UNLIMITED_SESSION_KEY = "unlimited_game"
UNSAVED_GUESS_MESSAGE = "Your guess counted, but we couldn't save it. It may be missing if you reload."


def create_daily_blueprint(current_user_provider: UserProvider) -> Blueprint:
    """Factory so the main app can inject its session-based user lookup."""

    bp = Blueprint("daily", __name__)

    def _current_player() -> Player:
        user = current_user_provider()
        user_id = str(user.get("id")) if user and user.get("id") else None
        return Player(user_id=user_id, device_id=_ensure_device_id())

    def _wants_json() -> bool:
        accepts = request.accept_mimetypes
        return (
            request.is_json
            or request.headers.get("X-Requested-With") == "XMLHttpRequest"
            or accepts["application/json"] > accepts["text/html"]
        )

    def _guess_from_request() -> Optional[str]:
        if request.is_json:
            payload = request.get_json(silent=True) or {}
            return payload.get("guess")
        return request.form.get("guess")

    @bp.get("/")
    def play():
        player = _current_player()
        try:
            view = service.build_daily_view(player)
        except DailyServiceError as exc:
            return (
                render_template(
                    "daily/game.html",
                    mode="daily",
                    unavailable_message=str(exc),
                    user=current_user_provider(),
                ),
                exc.status_code,
            )
        return render_template("daily/game.html", mode="daily", user=current_user_provider(), **view)

    @bp.post("/guess")
    def submit_guess():
        json_mode = _wants_json()
        player = _current_player()
        try:
            outcome = service.submit_daily_guess(player, _guess_from_request())
        except DailyServiceError as exc:
            if json_mode:
                return jsonify(exc.payload), exc.status_code
            flash(str(exc), "error")
            return redirect(url_for(".play"))

        if json_mode:
            return jsonify(outcome.to_dict())
        if not outcome.accepted:
            flash("Today's game is already finished.", "info")
        elif not outcome.saved:
            flash(UNSAVED_GUESS_MESSAGE, "warning")
        return redirect(url_for(".play"))

    @bp.get("/api/pokemon/search")
    def search_pokemon():
        query = request.args.get("q", "")
        try:
            results = get_pokedex_service().search_species(query)
        except PokedexError as exc:
            return jsonify(exc.payload), exc.status_code
        return jsonify(results)

    @bp.get("/api/stats")
    def player_stats():
        return jsonify(service.get_player_stats(_current_player()).to_dict())

    @bp.get("/history")
    def history():
        player = _current_player()
        return render_template(
            "daily/history.html",
            rows=service.get_player_history(player),
            stats=service.get_player_stats(player),
            user=current_user_provider(),
        )

    @bp.get("/help")
    def help_page():
        return render_template("daily/help.html", user=current_user_provider())

    @bp.get("/unlimited")
    def unlimited():
        game = session.get(UNLIMITED_SESSION_KEY)
        if not game:
            try:
                game = _start_unlimited()
            except PokedexError:
                return (
                    render_template(
                        "daily/game.html",
                        mode="unlimited",
                        unavailable_message="Pokémon data is unavailable right now.",
                        user=current_user_provider(),
                    ),
                    502,
                )
        board = service.build_board(service.unlimited_state(game), game["answer"])
        return render_template("daily/game.html", mode="unlimited", user=current_user_provider(), **board)

    @bp.post("/unlimited/guess")
    def unlimited_guess():
        json_mode = _wants_json()
        game = session.get(UNLIMITED_SESSION_KEY)
        if not game:
            if json_mode:
                return jsonify({"error": "no_active_game"}), 409
            return redirect(url_for(".unlimited"))
        try:
            updated, outcome = service.submit_unlimited_guess(game, _guess_from_request())
        except DailyServiceError as exc:
            if json_mode:
                return jsonify(exc.payload), exc.status_code
            flash(str(exc), "error")
            return redirect(url_for(".unlimited"))

        session[UNLIMITED_SESSION_KEY] = updated
        if json_mode:
            return jsonify(outcome.to_dict())
        return redirect(url_for(".unlimited"))

    @bp.post("/unlimited/new")
    def unlimited_new():
        session.pop(UNLIMITED_SESSION_KEY, None)
        return redirect(url_for(".unlimited"))

    def _start_unlimited() -> dict:
        game = service.start_unlimited_game()
        session[UNLIMITED_SESSION_KEY] = game
        return game

    return bp


def _ensure_device_id() -> str:
    device_id = session.get(DEVICE_SESSION_KEY)
    if not device_id:
        device_id = str(uuid.uuid4())
        session[DEVICE_SESSION_KEY] = device_id
        session.permanent = True
    return device_id
