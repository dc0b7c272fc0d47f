import plistlib

from todo.lib.install import install_agent, parse_time, reminder_plist, write_xbar_plugin


def test_parse_time():
    assert parse_time("09:30") == (9, 30)
    assert parse_time("20") == (20, 0)
    assert parse_time("xx:yy") == (0, 0)


def test_reminder_plist_is_valid():
    plist = plistlib.loads(reminder_plist("com.todo.test", "hello", 9, 5).encode())
    assert plist["Label"] == "com.todo.test"
    assert plist["StartCalendarInterval"] == {"Hour": 9, "Minute": 5}
    assert "hello" in plist["ProgramArguments"][2]


def test_install_agent_writes_once(tmp_path):
    plist = reminder_plist("com.todo.test", "hello", 9, 0)
    assert install_agent("com.todo.test", plist, launchd_dir=tmp_path, load=False)
    assert (tmp_path / "com.todo.test.plist").read_text() == plist
    assert not install_agent("com.todo.test", plist, launchd_dir=tmp_path, load=False)


def test_xbar_plugin(tmp_path):
    path = write_xbar_plugin(60, plugin_dir=tmp_path)
    assert path == tmp_path / "todo.60s.sh"
    assert "todo --use-cache status --format xbar" in path.read_text()
    assert path.stat().st_mode & 0o111


def test_xbar_plugin_without_xbar(tmp_path):
    assert write_xbar_plugin(60, plugin_dir=tmp_path / "missing") is None
