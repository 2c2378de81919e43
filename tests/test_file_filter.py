"""File filtering tests."""

import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from stge.constants import TEST_DIRECTORY_NAMES
from stge.repo.file_filter import FileFilter


@pytest.fixture
def temp_project():
    """Create a temporary Kotlin project layout."""
    with tempfile.TemporaryDirectory() as tmpdir:
        project = Path(tmpdir)

        main = project / "src" / "main" / "kotlin" / "com" / "demo"
        main.mkdir(parents=True)
        (main / "Shop.kt").write_text("class Shop")
        (main / "Util.kt").write_text("fun util() = 1")
        (main / "notes.md").write_text("notes")
        tests = project / "src" / "test" / "kotlin"
        tests.mkdir(parents=True)
        (tests / "ShopTest.kt").write_text("class ShopTest")
        (project / "build" / "generated").mkdir(parents=True)
        (project / "build" / "generated" / "Gen.kt").write_text("class Gen")
        (project / ".gradle").mkdir()
        (project / ".gradle" / "Cache.kt").write_text("class Cache")
        (project / "build.gradle.kts").write_text("plugins {}")

        yield project


def test_includes_kotlin_sources(temp_project: Path):
    """Kotlin sources come back as sorted relative posix paths."""
    files = FileFilter(temp_project).get_files()

    assert files == [
        "src/main/kotlin/com/demo/Shop.kt",
        "src/main/kotlin/com/demo/Util.kt",
    ]


def test_default_excludes_test_directories(temp_project: Path):
    """Sources under test directories are never analyzed."""
    files = FileFilter(temp_project).get_files()

    assert not any("/test/" in f for f in files)


def test_default_excludes_build_and_dotdirs(temp_project: Path):
    """Build outputs and hidden directories are skipped."""
    files = FileFilter(temp_project).get_files()

    assert not any(f.startswith("build/") or f.startswith(".gradle/") for f in files)


def test_default_excludes_gradle_scripts(temp_project: Path):
    """Gradle Kotlin scripts are not application code."""
    (temp_project / "settings.gradle.kts").write_text("rootProject.name = \"demo\"")

    files = FileFilter(temp_project).get_files()

    assert not any(f.endswith(".gradle.kts") for f in files)


def test_stgeignore_adds_custom_patterns(temp_project: Path):
    """Patterns in .stgeignore are excluded; comments are ignored."""
    (temp_project / ".stgeignore").write_text("# generated helpers\nUtil.kt\n")

    files = FileFilter(temp_project).get_files()

    assert files == ["src/main/kotlin/com/demo/Shop.kt"]


def test_stgeignore_directory_with_trailing_slash(temp_project: Path):
    """A trailing slash pattern excludes a directory at any depth."""
    (temp_project / ".stgeignore").write_text("demo/\n")

    assert FileFilter(temp_project).get_files() == []


def test_path_pattern_excludes_subtree(temp_project: Path):
    """Patterns containing a slash match path prefixes."""
    other = temp_project / "src" / "main" / "kotlin" / "com" / "other"
    other.mkdir()
    (other / "Other.kt").write_text("class Other")

    files = FileFilter(temp_project, extra_excludes=["src/main/kotlin/com/demo"]).get_files()

    assert files == ["src/main/kotlin/com/other/Other.kt"]


def test_explicit_ignore_path(temp_project: Path):
    """An explicit ignore file replaces the project's .stgeignore."""
    (temp_project / ".stgeignore").write_text("Shop.kt\n")
    ignore = temp_project / "custom.ignore"
    ignore.write_text("Util.kt\n")

    files = FileFilter(temp_project, ignore_path=ignore).get_files()

    assert files == ["src/main/kotlin/com/demo/Shop.kt"]


def test_respects_max_file_size(temp_project: Path):
    """Files over the size limit are skipped."""
    (temp_project / "src" / "main" / "kotlin" / "Big.kt").write_text("x" * 2048)

    files = FileFilter(temp_project, max_file_size_kb=1).get_files()

    assert "src/main/kotlin/Big.kt" not in files
    assert "src/main/kotlin/com/demo/Shop.kt" in files


def test_excludes_binary_files(temp_project: Path):
    """Files with NUL bytes are treated as binary."""
    (temp_project / "src" / "main" / "kotlin" / "Blob.kt").write_bytes(b"class\x00Blob")

    files = FileFilter(temp_project).get_files()

    assert "src/main/kotlin/Blob.kt" not in files


def test_custom_extensions(temp_project: Path):
    """Extensions can be widened to include scripts."""
    (temp_project / "tool.kts").write_text("println(1)")

    files = FileFilter(temp_project, extensions=[".kt", ".kts"]).get_files()

    assert "tool.kts" in files


@given(
    st.lists(
        st.text(alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz"), min_size=1, max_size=8),
        min_size=0,
        max_size=4,
    ),
    st.sampled_from(TEST_DIRECTORY_NAMES),
    st.text(alphabet=st.sampled_from("ABCDEFGHIJKLMNOPQRSTUVWXYZ"), min_size=1, max_size=8),
)
@settings(max_examples=100)
def test_anything_under_a_test_directory_is_excluded(prefix: list[str], test_dir: str, name: str):
    """Property: a path with a test directory component is always excluded."""
    file_filter = FileFilter(Path("/nonexistent-project"))

    path = "/".join([*prefix, test_dir, f"{name}.kt"])

    assert file_filter._is_excluded(path)
