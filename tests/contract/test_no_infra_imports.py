import ast
import pathlib

SRC = pathlib.Path(__file__).resolve().parents[2] / "src"


def _imported_modules(path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module:
            yield node.module
        if isinstance(node, ast.Import):
            for n in node.names:
                yield n.name


def _assert_no_imports(pattern, banned):
    files = list(SRC.glob(pattern))
    assert files, f"no files matched {pattern}"
    for py in files:
        for module in _imported_modules(py):
            for word in banned:
                if module == word or module.startswith(word + ".") or f".{word}" in module:
                    raise AssertionError(f"{py.relative_to(SRC)} imports {module}")


def test_domain_is_framework_free():
    _assert_no_imports("*/domain/**/*.py", ("infrastructure", "fastapi", "sqlalchemy", "pydantic"))


def test_application_does_not_touch_web_or_orm():
    _assert_no_imports("*/application/**/*.py", ("fastapi", "sqlalchemy", "starlette"))
