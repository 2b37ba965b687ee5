import json

from main import build_parser, main


def _run(capsys, data_dir, *args):
    code = main(["--data-dir", str(data_dir), *args])
    out = capsys.readouterr()
    return code, out.out, out.err


def test_parser_requires_command():
    parser = build_parser()
    args = parser.parse_args(["list", "--sort", "title"])
    assert args.command == "list"
    assert args.sort == "TITLE"


def test_add_list_and_languages(tmp_path, capsys):
    code, out, _ = _run(capsys, tmp_path, "add", "--title", "Dune", "--surname", "Herbert", "--name", "Frank")
    assert code == 0
    assert json.loads(out)["author"] == "Herbert, Frank"
    _run(capsys, tmp_path, "add", "--title", "Inkinsela", "--surname", "Ntuli", "--language", "zulu", "--read")

    code, out, _ = _run(capsys, tmp_path, "list")
    books = json.loads(out)
    assert [b["title"] for b in books] == ["Dune", "Inkinsela"]
    assert books[0]["displayAuthor"] == "Frank Herbert"

    code, out, _ = _run(capsys, tmp_path, "list", "--search", "NTU")
    assert [b["title"] for b in json.loads(out)] == ["Inkinsela"]

    code, out, _ = _run(capsys, tmp_path, "languages")
    langs = json.loads(out)
    assert langs["available"] == ["English", "Zulu"]
    assert langs["selected"] == ["English", "Zulu"]
    assert langs["choices"] == ["Afrikaans", "English", "Zulu"]


def test_duplicate_add_reports_error(tmp_path, capsys):
    _run(capsys, tmp_path, "add", "--title", "Dune", "--surname", "Herbert")
    code, _, err = _run(capsys, tmp_path, "add", "--title", "DUNE", "--surname", "herbert")
    assert code == 2
    assert "error:" in err


def test_toggle_filter_and_delete(tmp_path, capsys):
    _run(capsys, tmp_path, "add", "--title", "Dune", "--surname", "Herbert", "--name", "Frank")
    assert _run(capsys, tmp_path, "toggle-read", "--title", "dune", "--author", "herbert, frank")[0] == 0
    _run(capsys, tmp_path, "filter", "read", "off")
    _, out, _ = _run(capsys, tmp_path, "list")
    assert json.loads(out) == []
    _run(capsys, tmp_path, "filter", "read", "on")
    _, out, _ = _run(capsys, tmp_path, "list")
    assert json.loads(out)[0]["read"] is True

    assert _run(capsys, tmp_path, "delete", "--title", "Dune", "--author", "Herbert, Frank")[0] == 0
    code, _, err = _run(capsys, tmp_path, "delete", "--title", "Dune", "--author", "Herbert, Frank")
    assert code == 2 and "No book" in err
