"""
Tests for the persisted download session store.
"""

import json

from voskfetch.tracker import PROCESS_SESSION_ID, SessionStore


class TestSessionStore:
    """Test the SessionStore class."""

    def test_mark_in_progress_persists_keys(self, tmp_path):
        path = tmp_path / 'state.json'
        store = SessionStore(path)

        store.mark_in_progress('model-de', 'abc')

        data = json.loads(path.read_text())
        assert data == {
            'download_in_progress_model-de': True,
            'download_session_model-de': 'abc',
            'download_progress_model-de': 0,
        }

    def test_state_survives_reload(self, tmp_path):
        path = tmp_path / 'state.json'
        store = SessionStore(path)
        store.mark_in_progress('model-fr', 'abc')
        store.save_progress('model-fr', 42)

        reloaded = SessionStore(path)

        assert reloaded.in_progress('model-fr')
        assert reloaded.session_id('model-fr') == 'abc'
        assert reloaded.progress('model-fr') == 42

    def test_clear_in_progress_removes_all_keys(self, tmp_path):
        store = SessionStore(tmp_path / 'state.json')
        store.mark_in_progress('model-fr', 'abc')
        store.mark_in_progress('model-de', 'abc')

        store.clear_in_progress('model-fr')

        assert not store.in_progress('model-fr')
        assert store.session_id('model-fr') is None
        assert store.progress('model-fr') == 0
        assert store.in_progress('model-de')

    def test_progress_is_clamped(self, tmp_path):
        store = SessionStore(tmp_path / 'state.json')
        store.save_progress('model-it', 140)
        assert store.progress('model-it') == 100
        store.save_progress('model-it', -3)
        assert store.progress('model-it') == 0

    def test_corrupt_state_file_starts_empty(self, tmp_path):
        path = tmp_path / 'state.json'
        path.write_text('{not json')

        store = SessionStore(path)

        assert not store.in_progress('model-de')
        store.mark_in_progress('model-de', 'abc')
        assert json.loads(path.read_text())['download_session_model-de'] == 'abc'

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / 'nested' / 'dir' / 'state.json'
        SessionStore(path).set('key', 'value')
        assert json.loads(path.read_text()) == {'key': 'value'}

    def test_process_session_id_is_stable(self):
        from voskfetch import tracker
        assert tracker.PROCESS_SESSION_ID == PROCESS_SESSION_ID
        assert len(PROCESS_SESSION_ID) == 32
