import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).parent.parent
_TESTS = Path(__file__).parent

for path in (_REPO_ROOT, _TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
