"""
End-to-end daily flow through the Flask routes.
"""

from daily.store import RecordStoreError, SqlRecordStore

WRONG = ["bulbasaur", "charmander", "squirtle", "eevee", "snorlax", "mew"]


def _log_in(client, user_id="user-1"):
    with client.session_transaction() as sess:
        sess["user"] = {"id": user_id, "email": "ash@example.com", "username": "ash", "admin": False}


def test_missing_puzzle_is_reported(client):
    resp = client.get("/")
    assert resp.status_code == 404
    assert b"No puzzle available today." in resp.data

    resp = client.post("/guess", json={"guess": "pikachu"})
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "puzzle_not_found"


def test_blank_guess_is_rejected(client, seed_puzzle):
    seed_puzzle("pikachu")
    resp = client.post("/guess", json={"guess": "  "})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "missing_guess"}


def test_anonymous_player_wins_and_game_locks(client, seed_puzzle):
    seed_puzzle("pikachu")
    page = client.get("/")
    assert page.status_code == 200
    assert b"Type: ???" in page.data

    first = client.post("/guess", json={"guess": "eevee"}).get_json()
    assert first["isCorrect"] is False
    assert first["attemptsUsed"] == 1
    assert first["hintLevel"] == 1
    assert "answer" not in first

    second = client.post("/guess", json={"guess": "Pikachu"}).get_json()
    assert second["isCorrect"] is True
    assert second["status"] == "won"
    assert second["hintLevel"] == 6
    assert second["answer"] == "pikachu"

    third = client.post("/guess", json={"guess": "mew"}).get_json()
    assert third["accepted"] is False
    assert third["attemptsUsed"] == 2

    stats = client.get("/api/stats").get_json()
    assert stats == {"totalGames": 1, "totalWins": 1, "currentStreak": 1, "bestStreak": 1}

    page = client.get("/")
    assert b"Type: electric" in page.data
    assert b"https://img.example/pikachu.png" in page.data


def test_anonymous_player_loses_after_six_guesses(client, seed_puzzle):
    seed_puzzle("pikachu")
    for name in WRONG:
        payload = client.post("/guess", json={"guess": name}).get_json()
    assert payload["status"] == "lost"
    assert payload["answer"] == "pikachu"
    assert client.get("/api/stats").get_json()["currentStreak"] == 0


def test_form_post_redirects_back_to_board(client, seed_puzzle):
    seed_puzzle("pikachu")
    resp = client.post("/guess", data={"guess": "eevee"})
    assert resp.status_code == 302
    page = client.get("/")
    assert b"eevee" in page.data


def test_signed_in_player_is_persisted(app, client, seed_puzzle):
    puzzle_id = seed_puzzle("pikachu")
    _log_in(client)

    client.post("/guess", json={"guess": "eevee"})
    payload = client.post("/guess", json={"guess": "pikachu"}).get_json()
    assert payload["status"] == "won"
    assert payload["saved"] is True

    with app.app_context():
        game = SqlRecordStore().get_game("user-1", puzzle_id)
        assert [g.attempt_number for g in game.guesses] == [1, 2]
        assert game.is_finished and game.won is True

    assert client.get("/api/stats").get_json()["totalWins"] == 1


def test_write_failure_does_not_block_play(client, seed_puzzle, monkeypatch):
    seed_puzzle("pikachu")
    _log_in(client)

    def broken_append(self, *args, **kwargs):
        raise RecordStoreError("database unavailable")

    monkeypatch.setattr(SqlRecordStore, "append_guess", broken_append)

    resp = client.post("/guess", json={"guess": "eevee"})
    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["accepted"] is True
    assert payload["saved"] is False
    assert payload["attemptsUsed"] == 1

    resp = client.post("/guess", data={"guess": "mew"}, follow_redirects=True)
    assert resp.status_code == 200
    assert b"couldn&#39;t save it" in resp.data


def test_lost_finish_write_is_closed_out_on_next_load(client, seed_puzzle, monkeypatch):
    seed_puzzle("pikachu")
    _log_in(client)

    def broken_finish(self, *args, **kwargs):
        raise RecordStoreError("database unavailable")

    with monkeypatch.context() as patched:
        patched.setattr(SqlRecordStore, "finish_game", broken_finish)
        payload = client.post("/guess", json={"guess": "pikachu"}).get_json()
        assert payload["status"] == "won"
        assert payload["saved"] is False

    assert client.get("/").status_code == 200
    again = client.post("/guess", json={"guess": "pikachu"}).get_json()
    assert again["accepted"] is False
    assert again["status"] == "won"

    stats = client.get("/api/stats").get_json()
    assert stats == {"totalGames": 1, "totalWins": 1, "currentStreak": 1, "bestStreak": 1}


def test_lost_finish_write_on_sixth_miss_counts_as_loss(app, client, seed_puzzle, monkeypatch):
    puzzle_id = seed_puzzle("pikachu")
    _log_in(client)

    def broken_finish(self, *args, **kwargs):
        raise RecordStoreError("database unavailable")

    with monkeypatch.context() as patched:
        patched.setattr(SqlRecordStore, "finish_game", broken_finish)
        for name in WRONG:
            payload = client.post("/guess", json={"guess": name}).get_json()
        assert payload["status"] == "lost"

    client.get("/")
    with app.app_context():
        game = SqlRecordStore().get_game("user-1", puzzle_id)
        assert game.is_finished is True
        assert game.won is False

    stats = client.get("/api/stats").get_json()
    assert stats["totalGames"] == 1
    assert stats["totalWins"] == 0


def test_metadata_outage_still_shows_board(client, seed_puzzle, pokedex):
    seed_puzzle("pikachu")
    pokedex.down = True
    page = client.get("/")
    assert page.status_code == 200
    assert "Pokémon data is unavailable right now.".encode() in page.data


def test_history_page_lists_games(client, seed_puzzle):
    seed_puzzle("pikachu")
    client.post("/guess", json={"guess": "eevee"})
    client.post("/guess", json={"guess": "pikachu"})
    page = client.get("/history")
    assert page.status_code == 200
    assert page.data.count(b'class="tile wrong"') == 1
    assert page.data.count(b'class="tile correct"') == 1
    assert page.data.count(b'class="tile empty"') == 4


def test_search_endpoint(client):
    assert client.get("/api/pokemon/search?q=").get_json() == []
    names = [entry["name"] for entry in client.get("/api/pokemon/search?q=chu").get_json()]
    assert names == ["pikachu", "pichu", "raichu"]


def test_unlimited_mode_round(client):
    page = client.get("/unlimited")
    assert page.status_code == 200

    payload = client.post("/unlimited/guess", json={"guess": "charizard"}).get_json()
    assert payload["status"] == "won"
    assert payload["answer"] == "charizard"

    client.post("/unlimited/new", follow_redirects=True)
    payload = client.post("/unlimited/guess", json={"guess": "eevee"}).get_json()
    assert payload["attemptsUsed"] == 1


def test_unlimited_guess_without_game(client):
    resp = client.post("/unlimited/guess", json={"guess": "eevee"})
    assert resp.status_code == 409


def test_unlimited_mode_reports_pokedex_outage(client, pokedex):
    pokedex.down = True
    assert client.get("/unlimited").status_code == 502


def test_help_and_unknown_pages(client):
    assert client.get("/help").status_code == 200
    assert client.get("/nope").status_code == 404
