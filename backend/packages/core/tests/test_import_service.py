"""Tests for the import service."""

import hashlib
import io

import pytest
from sqlalchemy import func, select

from ferry_core.exceptions import ConflictError, NotFoundError, SourceFormatError
from ferry_core.schemas import ImportOptions
from ferry_core.services import ImportService, ObjectRepository
from ferry_database.models import ContentObject, ObjectRelation, Stream, Translation, Tree


def _count(session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()


def _write_csv(tmp_path, name: str, content: str) -> str:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def _service(session, filename: str, type_: str = "documents", **options) -> ImportService:
    return ImportService(session, ImportOptions(filename=filename, type=type_, **options))


def _assert_counters(result) -> None:
    assert result.processed == result.saved + result.skipped + result.errors


class TestSaveObjects:
    """Test object imports."""

    def test_import_csv(self, db_session, fixtures_dir):
        """Test that every row becomes an object of the requested type."""
        result = _service(db_session, str(fixtures_dir / "articles.csv")).run()

        assert (result.processed, result.saved, result.skipped, result.errors) == (3, 3, 0, 0)
        objects = db_session.execute(select(ContentObject).order_by(ContentObject.id)).scalars().all()
        assert [o.uname for o in objects] == ["article-one", "article-two", "article-three"]
        assert {o.type for o in objects} == {"documents"}
        assert objects[0].body == "<p>One</p>"
        assert objects[0].created_by == "admin"

    def test_import_is_idempotent(self, db_session, tmp_path):
        """Test that a second run updates the objects instead of duplicating them."""
        first = _write_csv(tmp_path, "v1.csv", "uname,title\na,First A\nb,First B\n")
        second = _write_csv(tmp_path, "v2.csv", "uname,title\na,Second A\nb,Second B\n")

        _service(db_session, first).run()
        result = _service(db_session, second).run()

        assert result.saved == 2
        assert _count(db_session, ContentObject) == 2
        titles = db_session.execute(
            select(ContentObject.title).order_by(ContentObject.uname)
        ).scalars().all()
        assert titles == ["Second A", "Second B"]

    def test_match_by_id_without_uname(self, db_session, make_object, tmp_path):
        """Test that an id identifies the object when no uname is given."""
        obj = make_object(uname="by-id", title="Old")
        source = _write_csv(tmp_path, "ids.csv", f"id,title\n{obj.id},New\n")

        result = _service(db_session, source).run()

        assert result.saved == 1
        assert _count(db_session, ContentObject) == 1
        assert db_session.get(ContentObject, obj.id).title == "New"

    def test_uname_wins_over_id(self, db_session, make_object, tmp_path):
        """Test that uname is the identifying key when both are present."""
        first = make_object(uname="first", title="First")
        make_object(uname="second", title="Second")
        source = _write_csv(tmp_path, "both.csv", f"id,uname,title\n{first.id},second,Updated\n")

        _service(db_session, source).run()

        titles = dict(db_session.execute(select(ContentObject.uname, ContentObject.title)).all())
        assert titles == {"first": "First", "second": "Updated"}

    def test_extra_fields_go_to_properties(self, db_session, fixtures_dir):
        result = _service(db_session, str(fixtures_dir / "authors.csv")).run()

        assert result.saved == 4
        obj = db_session.execute(
            select(ContentObject).where(ContentObject.title == "Ulysses")
        ).scalar_one()
        assert obj.properties == {"author": "James Joyce"}
        assert obj.uname.startswith("ulysses-")

    def test_mapping(self, db_session, fixtures_dir):
        """Test that the field mapping is applied before saving."""
        result = _service(
            db_session,
            str(fixtures_dir / "authors.csv"),
            mapping={"title": "title", "author": "extra.author.name"},
        ).run()

        assert result.saved == 4
        obj = db_session.execute(
            select(ContentObject).where(ContentObject.title == "Moby-Dick")
        ).scalar_one()
        assert obj.extra == {"author": {"name": "Herman Melville"}}

    def test_import_xml(self, db_session, fixtures_dir):
        result = _service(
            db_session,
            str(fixtures_dir / "articles.xml"),
            source_format="xml",
            element="article",
        ).run()

        assert result.saved == 2
        obj = db_session.execute(
            select(ContentObject).where(ContentObject.uname == "xml-article-one")
        ).scalar_one()
        assert obj.title == "XML article one"
        assert obj.properties["tag"] == ["news", "culture"]

    def test_unknown_type_fails_every_record(self, db_session, fixtures_dir):
        result = _service(db_session, str(fixtures_dir / "articles.csv"), "documentzzzz").run()

        assert (result.processed, result.saved, result.errors) == (3, 0, 3)
        assert result.errors_details == ['Object type "documentzzzz" not found'] * 3

    def test_record_errors_do_not_stop_the_run(self, db_session, make_object, tmp_path):
        """Test per-record isolation with mixed failures."""
        make_object(type_="events", uname="an-event")
        source = _write_csv(
            tmp_path,
            "mixed.csv",
            "uname,title,status\nok-1,Ok,on\nbad-status,Bad,published\nan-event,Conflict,on\nok-2,Ok,off\n",
        )

        result = _service(db_session, source).run()

        assert (result.processed, result.saved, result.errors) == (4, 2, 2)
        _assert_counters(result)
        assert result.errors_details[0] == 'Invalid status "published"'
        assert "already present" in result.errors_details[1]

    def test_source_format_error_stops_the_run(self, db_session, fixtures_dir):
        with pytest.raises(SourceFormatError):
            _service(db_session, str(fixtures_dir / "bad-columns.csv")).run()

    def test_undecodable_source_stops_the_run(self, db_session, tmp_path):
        source = tmp_path / "latin.csv"
        source.write_bytes(b"uname,title\nfirst,First\nsecond,Caf\xff\xfe\n")

        with pytest.raises(SourceFormatError, match="Cannot decode"):
            _service(db_session, str(source)).run()


class TestDryRun:
    """Test dry-run imports."""

    def test_nothing_is_written(self, db_session, fixtures_dir):
        result = _service(db_session, str(fixtures_dir / "articles.csv"), dry_run=True).run()

        assert (result.processed, result.saved, result.skipped, result.errors) == (3, 0, 3, 0)
        assert _count(db_session, ContentObject) == 0

    def test_existing_objects_are_not_changed(self, db_session, make_object, tmp_path):
        make_object(uname="existing", title="Original")
        source = _write_csv(tmp_path, "update.csv", "uname,title\nexisting,Changed\n")

        result = _service(db_session, source, dry_run=True).run()
        db_session.commit()
        db_session.expire_all()

        assert result.skipped == 1
        obj = db_session.execute(
            select(ContentObject).where(ContentObject.uname == "existing")
        ).scalar_one()
        assert obj.title == "Original"

    def test_conflicts_still_count_as_errors(self, db_session, make_object, tmp_path):
        make_object(type_="events", uname="an-event")
        source = _write_csv(tmp_path, "dry.csv", "uname,title\nan-event,X\nnew-one,Y\n")

        result = _service(db_session, source, dry_run=True).run()

        assert (result.processed, result.skipped, result.errors, result.saved) == (2, 1, 1, 0)


class TestSaveObject:
    """Test save_object resolution rules."""

    def test_conflict_with_other_type(self, db_session, make_object, tmp_path):
        existing = make_object(type_="events", uname="shared", title="Event title")
        service = _service(db_session, "unused.csv")

        with pytest.raises(ConflictError) as exc_info:
            service.save_object({"uname": "shared", "title": "Document title"})

        assert str(exc_info.value) == (
            'Object "shared" already present with another type "events" (requested "documents")'
        )
        db_session.expire_all()
        reloaded = db_session.get(ContentObject, existing.id)
        assert (reloaded.type, reloaded.title) == ("events", "Event title")

    def test_type_is_forced(self, db_session):
        service = _service(db_session, "unused.csv")

        entity = service.save_object({"uname": "typed", "type": "events"})

        assert entity.type == "documents"

    def test_clean_html_fields(self, db_session):
        service = _service(db_session, "unused.csv", clean_html=["body"])
        html = '<p class="lead" style="color: red">Hi <a href="/x" target="_blank">there</a></p>'

        entity = service.save_object({"uname": "cleaned", "body": html, "description": html})

        assert entity.body == '<p>Hi <a href="/x">there</a></p>'
        assert entity.description == html

    def test_parent_folder(self, db_session, make_object):
        folder = make_object(type_="folders", uname="my-folder")
        other = make_object(type_="folders", uname="other-folder")
        service = _service(db_session, "unused.csv", parent="my-folder")

        entity = service.save_object({"uname": "child", "title": "Child"})
        service.tree.set_parent(entity, other.id)
        service.save_object({"uname": "child", "title": "Child again"})

        links = db_session.execute(select(Tree).where(Tree.object_id == entity.id)).scalars().all()
        assert [link.parent_id for link in links] == [folder.id]
        assert [p.uname for p in service.tree.parents(entity)] == ["my-folder"]

    def test_missing_parent_folder_is_a_record_error(self, db_session, fixtures_dir):
        result = _service(db_session, str(fixtures_dir / "articles.csv"), parent="nowhere").run()

        assert (result.processed, result.saved, result.errors) == (3, 0, 3)
        assert result.errors_details[0] == 'Folder "nowhere" not found'
        _assert_counters(result)

    def test_set_related(self, db_session, make_object):
        document = make_object(uname="doc")
        first = make_object(type_="locations", uname="loc-1")
        second = make_object(type_="locations", uname="loc-2")
        service = _service(db_session, "unused.csv")

        assert service.set_related("placed_in", document, []) is False
        assert service.set_related("placed_in", document, [first, second]) == [first.id, second.id]
        assert service.set_related("placed_in", document, [second]) == [second.id]

        relations = db_session.execute(select(ObjectRelation)).scalars().all()
        assert [(r.right_id, r.priority) for r in relations] == [(second.id, 1)]


class TestSaveTranslations:
    """Test translation imports."""

    def test_missing_objects(self, db_session, fixtures_dir):
        result = _service(
            db_session, str(fixtures_dir / "missing-objects-translations.csv"), "translations"
        ).run()

        assert (result.processed, result.saved, result.errors) == (3, 0, 3)
        assert result.errors_details == [
            'Object "missing-one" not found',
            'Object "missing-two" not found',
            'Object "missing-three" not found',
        ]

    def test_missing_objects_in_dry_run(self, db_session, fixtures_dir):
        result = _service(
            db_session,
            str(fixtures_dir / "missing-objects-translations.csv"),
            "translations",
            dry_run=True,
        ).run()

        assert (result.processed, result.skipped, result.errors) == (3, 0, 3)

    def test_save_and_update(self, db_session, fixtures_dir):
        """Test that translations are created, then updated in place."""
        _service(db_session, str(fixtures_dir / "articles.csv")).run()
        translations_csv = str(fixtures_dir / "articles-translations.csv")

        first = _service(db_session, translations_csv, "translations").run()
        second = _service(db_session, translations_csv, "translations", status="draft").run()

        assert first.saved == 3
        assert second.saved == 3
        assert _count(db_session, Translation) == 3
        rows = db_session.execute(select(Translation).order_by(Translation.object_id)).scalars().all()
        assert rows[0].translated_fields == {"title": "Articolo uno"}
        assert rows[2].translated_fields == {"title": "Articolo tre", "body": "<p>Tre</p>"}
        assert {row.lang for row in rows} == {"it"}
        assert {row.status for row in rows} == {"draft"}

    def test_mapping_not_applied(self, db_session, fixtures_dir):
        """Test that translation records are saved as read, whatever the mapping."""
        _service(db_session, str(fixtures_dir / "articles.csv")).run()

        result = _service(
            db_session,
            str(fixtures_dir / "articles-translations.csv"),
            "translations",
            mapping={"translation_title": "title"},
        ).run()

        assert (result.saved, result.errors) == (3, 0)
        first = db_session.execute(select(Translation).order_by(Translation.object_id)).scalars().first()
        assert first.translated_fields == {"title": "Articolo uno"}
        assert first.lang == "it"

    def test_save_translation_not_found(self, db_session):
        service = _service(db_session, "unused.csv", "translations")

        with pytest.raises(NotFoundError, match='Object "ghost" not found'):
            service.save_translation({"object_uname": "ghost", "lang": "it"})

    def test_dry_run_writes_nothing(self, db_session, make_object):
        make_object(uname="doc")
        service = _service(db_session, "unused.csv", "translations", dry_run=True)

        translation = service.save_translation(
            {"object_uname": "doc", "lang": "fr", "translation_title": "Bonjour"}
        )

        assert translation.translated_fields == {"title": "Bonjour"}
        assert service.result.skipped == 1
        assert _count(db_session, Translation) == 0

class TestMedia:
    """Test media and stream creation."""

    def test_save_media(self, db_session):
        service = _service(db_session, "unused.csv", "images")

        stream = service.save_media(
            "images",
            {"title": "logo.png", "status": "on"},
            {"file_name": "logo.png", "mime_type": "image/png", "contents": b"\x89PNG data"},
        )

        assert isinstance(stream, Stream)
        assert stream.file_name == "logo.png"
        assert stream.mime_type == "image/png"
        assert stream.file_size == 9
        assert stream.hash_md5 == hashlib.md5(b"\x89PNG data").hexdigest()
        media = db_session.get(ContentObject, stream.object_id)
        assert (media.type, media.title, media.status) == ("images", "logo.png", "on")
        assert stream.created_by == "admin"

    def test_save_media_from_readable(self, db_session):
        service = _service(db_session, "unused.csv", "images")

        stream = service.save_media(
            "images", {"title": "notes"}, {"file_name": "notes.txt", "contents": io.BytesIO(b"hi")}
        )

        assert stream.contents == b"hi"
        assert stream.mime_type == "application/octet-stream"

    def test_save_media_dry_run(self, db_session):
        service = _service(db_session, "unused.csv", "images", dry_run=True)

        media = service.save_media(
            "images", {"title": "logo.png", "status": "on"}, {"file_name": "logo.png"}
        )

        assert isinstance(media, ContentObject)
        assert (media.title, media.status) == ("logo.png", "on")
        assert service.result.skipped == 1
        assert _count(db_session, ContentObject) == 0
        assert _count(db_session, Stream) == 0

    def test_save_media_unknown_type(self, db_session):
        service = _service(db_session, "unused.csv", "images")

        with pytest.raises(NotFoundError, match='Object type "videos" not found'):
            service.save_media("videos", {"title": "clip"}, {"file_name": "clip.mp4"})


class TestFindImported:
    """Test lookup of objects by their source identifier."""

    def test_find_by_identifier(self, db_session, make_object):
        wanted = make_object(uname="wanted", extra={"identifier": {"legacy_id": "42"}})
        make_object(uname="other", extra={"identifier": {"legacy_id": "43"}})
        make_object(uname="plain")
        make_object(type_="events", uname="event", extra={"identifier": {"legacy_id": "42"}})
        service = _service(db_session, "unused.csv")

        found = service.find_imported("documents", "legacy_id", "42")

        assert [o.id for o in found] == [wanted.id]

    def test_deleted_objects_left_out(self, db_session, make_object):
        make_object(uname="gone", deleted=True, extra={"identifier": {"legacy_id": "7"}})
        service = _service(db_session, "unused.csv")

        assert service.find_imported("documents", "legacy_id", "7") == []

    def test_repository_without_type(self, db_session, make_object):
        document = make_object(uname="doc", extra={"identifier": {"wp": "100"}})
        event = make_object(type_="events", uname="ev", extra={"identifier": {"wp": "100"}})

        found = ObjectRepository(db_session).find_imported("wp", 100)

        assert [o.id for o in found] == [document.id, event.id]



class TestTranslatedFields:
    """Test translated_fields extraction."""

    def test_prefixed_fields(self):
        source = {
            "translation_title": "x",
            "translation_body": "y",
            "object_uname": "u",
            "lang": "it",
        }

        assert ImportService.translated_fields(source) == {"title": "x", "body": "y"}

    def test_unprefixed_fields_keep_their_name(self):
        source = {"id": "1", "object_uname": "u", "lang": "it", "description": "z"}

        assert ImportService.translated_fields(source) == {"description": "z"}

    def test_encoded_fields_win(self):
        source = {
            "translated_fields": '{"title":"x"}',
            "translation_body": "ignored",
            "object_uname": "u",
            "lang": "it",
        }

        assert ImportService.translated_fields(source) == {"title": "x"}

    def test_decoded_structure(self):
        source = {"translated_fields": {"title": "x", "extra": {"a": 1}}, "lang": "it"}

        assert ImportService.translated_fields(source) == {"title": "x", "extra": {"a": 1}}

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            ImportService.translated_fields({"translated_fields": "{not json"})
