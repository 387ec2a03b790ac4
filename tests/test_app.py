import pathlib

import pytest

AppTest = pytest.importorskip("streamlit.testing.v1").AppTest

APP_PATH = str(pathlib.Path(__file__).resolve().parent.parent / "app.py")


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("MINILOK_BACKEND", "local")
    monkeypatch.setenv("MINILOK_DB_PATH", str(tmp_path / "app.db"))
    at = AppTest.from_file(APP_PATH, default_timeout=60)
    at.run()
    return at


def test_dashboard_renders_on_empty_store(app):
    assert not app.exception
    assert app.main.title[0].value == "📊 Dashboard"
    assert [m.value for m in app.metric] == ["0", "0", "0"]


@pytest.mark.parametrize("menu", ["➕ Input Data", "📈 Analisis & Tren", "📝 PDCA"])
def test_each_menu_renders(app, menu):
    app.sidebar.radio[0].set_value(menu).run()

    assert not app.exception
    assert app.main.title[0].value == menu
