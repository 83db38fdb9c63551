"""
Supabase record store against an in-memory double of the query builder.
"""

import pytest

from daily.store import RecordStoreError, SupabaseRecordStore, get_record_store


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = {}
        self.kwargs = {}

    def select(self, columns):
        self.op = "select"
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def limit(self, count):
        return self

    def upsert(self, payload, **kwargs):
        self.op, self.payload, self.kwargs = "upsert", payload, kwargs
        return self

    def insert(self, payload, **kwargs):
        self.op, self.payload, self.kwargs = "insert", payload, kwargs
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def execute(self):
        self.client.executed.append((self.table, self.op, self.payload, dict(self.filters), self.kwargs))
        if self.client.fail:
            raise RuntimeError("connection reset")
        if self.op == "select":
            return FakeResponse(self.client.rows.get(self.table, []))
        return FakeResponse([])


class FakeSupabase:
    def __init__(self, rows=None):
        self.rows = rows or {}
        self.executed = []
        self.fail = False

    def table(self, name):
        return FakeQuery(self, name)


def test_supabase_store_selected_when_configured(app):
    app.config.update(USE_SUPABASE=True, SUPABASE_CLIENT=FakeSupabase())
    with app.app_context():
        assert isinstance(get_record_store(), SupabaseRecordStore)


def test_puzzle_lookup_maps_columns():
    client = FakeSupabase({"daily_pokemon": [{"id": 7, "available_on": "2024-01-01", "pokemon_name": "mew"}]})
    puzzle = SupabaseRecordStore(client).get_puzzle_for_date("2024-01-01")
    assert (puzzle.id, puzzle.available_on, puzzle.answer_name) == ("7", "2024-01-01", "mew")
    assert client.executed[0][3] == {"available_on": "2024-01-01"}


def test_create_game_upserts_without_overwriting():
    client = FakeSupabase(
        {
            "games": [
                {
                    "id": "g1",
                    "user_id": "u1",
                    "daily_pokemon_id": "p1",
                    "won": None,
                    "is_finished": False,
                    "guesses": [
                        {"attempt_number": 2, "guess_name": "mew", "created_at": "2024-01-01T10:00:00Z"},
                        {"attempt_number": 1, "guess_name": "eevee", "created_at": "2024-01-01T09:59:00+00:00"},
                    ],
                }
            ]
        }
    )
    game = SupabaseRecordStore(client).create_game("u1", "p1")

    table, op, payload, _, kwargs = client.executed[0]
    assert (table, op) == ("games", "upsert")
    assert payload == {"user_id": "u1", "daily_pokemon_id": "p1"}
    assert kwargs == {"on_conflict": "user_id,daily_pokemon_id", "ignore_duplicates": True}

    assert [g.guess_name for g in game.guesses] == ["eevee", "mew"]
    assert game.guesses[0].created_at.tzinfo is not None


def test_history_reads_joined_puzzle():
    client = FakeSupabase(
        {
            "games": [
                {
                    "won": True,
                    "is_finished": True,
                    "guesses": [{"attempt_number": 1}],
                    "daily_pokemon": {"available_on": "2024-01-01", "pokemon_name": "mew"},
                },
                {"won": None, "is_finished": False, "guesses": [], "daily_pokemon": None},
            ]
        }
    )
    store = SupabaseRecordStore(client)
    assert store.list_games_with_dates("u1") == [
        {"date": "2024-01-01", "won": True, "is_finished": True, "guess_count": 1, "answer_name": "mew"}
    ]
    assert store.get_finished_games_with_dates("u1") == [{"date": "2024-01-01", "won": True}]


def test_client_errors_become_record_store_errors(app):
    client = FakeSupabase()
    client.fail = True
    with app.app_context():
        with pytest.raises(RecordStoreError):
            SupabaseRecordStore(client).append_guess("g1", "u1", "mew", 1)
