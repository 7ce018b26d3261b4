import json
import os
import tempfile


class HighScoreStore:
    """In-memory best scores, keyed by name."""

    def __init__(self, scores=None):
        self._scores = dict(scores or {})

    def load(self, key):
        return int(self._scores.get(key, 0))

    def save(self, key, value):
        self._scores[key] = int(value)


class JsonHighScoreStore(HighScoreStore):
    """
    Best scores persisted to a JSON object on disk.

    The file is read once on construction and replaced on every save. A
    missing file simply means no score has been recorded yet.
    """

    def __init__(self, path):
        self.path = path
        scores = {}
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                scores = json.load(f)
        super().__init__(scores)

    def save(self, key, value):
        super().save(key, value)

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        # Write beside the target, then swap it in so a reader never sees a partial file
        fd, tmp_path = tempfile.mkstemp(dir=directory or ".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._scores, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except Exception:
            os.remove(tmp_path)
            raise
