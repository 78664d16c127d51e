from conftest import make_file
from gallery.messages import Notifier
from gallery.staging import UploadStagingArea


def _staging():
    return UploadStagingArea(Notifier())


def test_add_files_filters_invalid_candidates():
    staging = _staging()
    added = staging.add_files([
        make_file("a.png"),
        make_file("notes.txt", content_type="text/plain"),
        make_file("empty.png", data=b""),
    ])
    assert added == 1
    assert [s.file.name for s in staging] == ["a.png"]


def test_add_files_rejects_when_nothing_valid():
    staging = _staging()
    staging.add_files([make_file("a.png")])

    assert staging.add_files([make_file("doc.pdf", content_type="application/pdf")]) == 0

    assert len(staging) == 1
    assert staging.notifier.current.text == "Please select valid image files."
    assert staging.notifier.current.is_error


def test_add_files_is_additive():
    staging = _staging()
    staging.add_files([make_file("a.png")])
    staging.add_files([make_file("b.png"), make_file("c.png")])
    assert [s.file.name for s in staging] == ["a.png", "b.png", "c.png"]


def test_remove_middle_file_keeps_metadata_contiguous():
    staging = _staging()
    staging.add_files([make_file("a.png"), make_file("b.png"), make_file("c.png")])
    for staged, text in zip(staging, ("first", "second", "third")):
        staged.description = text
        staged.theme = f"{text} theme"
    staging[2].category_id = 7

    staging.remove_file(1)

    assert len(staging) == 2
    assert [s.file.name for s in staging] == ["a.png", "c.png"]
    assert staging[0].description == "first"
    assert staging[1].description == "third"
    assert staging[1].theme == "third theme"
    assert staging[1].category_id == 7


def test_removing_last_file_clears_staging():
    staging = _staging()
    staging.add_files([make_file("a.png")])
    staging.remove_file(0)
    assert staging.is_empty
    assert staging.files == []


def test_clear_discards_everything():
    staging = _staging()
    staging.add_files([make_file("a.png"), make_file("b.png")])
    staging[0].description = "gone"
    staging.clear()
    assert len(staging) == 0


def test_payload_prefers_compressed_replacement():
    staging = _staging()
    staging.add_files([make_file("a.png")])
    staged = staging[0]
    assert staged.payload is staged.file
    replacement = make_file("a.jpg", content_type="image/jpeg")
    staged.compressed = replacement
    assert staged.payload is replacement
