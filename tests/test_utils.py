import os

import pytest

from orgsite import utils


def test_slugify_from_filename():
    assert utils.slugify(None, "/a/b/My Post.org") == "my-post"


def test_slugify_prefers_title():
    assert utils.slugify("Hello World", "/a/b/ignored.org") == "hello-world"


def test_slugify_empty_title_falls_back_to_path():
    assert utils.slugify("", "/a/b/Notes.org") == "notes"


def test_slugify_is_minimal():
    # Punctuation is kept and every whitespace character becomes a hyphen.
    assert utils.slugify("Tabs\tand  Spaces!", "/x.org") == "tabs-and--spaces!"
    # The title is treated like a file name, so its last "extension" goes.
    assert utils.slugify("Release v1.2", "/x.org") == "release-v1"


def test_legacy_join_does_not_normalize():
    assert utils.legacy_join("/site/", "output/a.html") == "/site/output/a.html"
    assert utils.legacy_join("/site/", "/output/a.html") == "/site//output/a.html"
    assert utils.legacy_join("/site", "output/a.html") == "/siteoutput/a.html"


def test_as_directory():
    assert utils.as_directory("/site") == "/site" + os.sep
    assert utils.as_directory("/site" + os.sep) == "/site" + os.sep


def test_compile_pattern_rejects_bad_regex():
    assert utils.compile_pattern("org$").search("/a/b.org")
    with pytest.raises(ValueError, match="Invalid pattern"):
        utils.compile_pattern("(")
