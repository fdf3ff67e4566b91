import pytest

from bounty_hunter.utils.logger import close_logging, init_logging


@pytest.fixture
def logger(request):
    log = init_logging(verbose=True, log_to_console=False, run_name=request.node.name)
    yield log
    close_logging(log)


@pytest.fixture
def make_tree(tmp_path):
    """Creates files from a {relative_path: content} mapping under tmp_path/tree."""
    def _make(files, root_name="tree"):
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return root
    return _make
