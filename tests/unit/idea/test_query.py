from typing import TYPE_CHECKING

from ideaflow.idea import (
    IdeaStatus,
    IntegrityKind,
    LifecycleEngine,
    QueryService,
    Stage,
    StageStore,
)

if TYPE_CHECKING:
    from tests.conftest import WriteIdeaFunc


class TestListing:
    def test_orders_by_created_then_id(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "backlog", "zebra", created="2024-01-01")
        _ = write_idea(store.root, "backlog", "beta", created="2024-02-01")
        _ = write_idea(store.root, "backlog", "alpha", created="2024-02-01")

        records = QueryService(store).list_by_stage(Stage.BACKLOG)

        assert [r.id for r in records] == ["zebra", "alpha", "beta"]

    def test_filters_combine(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "backlog", "a", area="editor")
        _ = write_idea(store.root, "backlog", "b", area="editor", status="ready")
        _ = write_idea(store.root, "active", "c", area="editor", status="active")
        _ = write_idea(store.root, "backlog", "d", area="footer", status="ready")

        query = QueryService(store)

        assert [r.id for r in query.list(area="editor")] == ["a", "b", "c"]
        assert [r.id for r in query.list_by_area("footer")] == ["d"]
        assert [r.id for r in query.list(status=IdeaStatus.READY)] == ["b", "d"]
        assert [
            r.id for r in query.list(stage=Stage.BACKLOG, area="editor")
        ] == ["a", "b"]

    def test_active_lists_only_active_stage(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "backlog", "a")
        _ = write_idea(store.root, "active", "b", status="active")
        _ = write_idea(store.root, "done", "c", status="done")

        assert [r.id for r in QueryService(store).active()] == ["b"]

    def test_unreadable_records_are_skipped(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "backlog", "good")
        _ = write_idea(store.root, "backlog", "bad", area="kitchen")

        assert [r.id for r in QueryService(store).list()] == ["good"]

    def test_empty_store_lists_nothing(self, store: StageStore) -> None:
        assert QueryService(store).list() == []


class TestFindInconsistent:
    def test_clean_store_has_no_warnings(self, engine: LifecycleEngine) -> None:
        idea_id = engine.create({"title": "Color Themes", "area": "global"}).id
        _ = engine.mark_ready(idea_id)
        _ = engine.promote(idea_id)

        assert engine.query.find_inconsistent() == []

    def test_reports_status_mismatch(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "backlog", "color-themes", status="done")

        warnings = QueryService(store).find_inconsistent()

        assert len(warnings) == 1
        assert warnings[0].kind is IntegrityKind.STATUS_MISMATCH
        assert warnings[0].idea_id == "color-themes"
        assert warnings[0].stages == (Stage.BACKLOG,)
        assert warnings[0].message == (
            "color-themes has status 'done' but lives in backlog"
        )

    def test_reports_duplicate_once_with_every_stage(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "done", "color-themes", status="done")
        _ = write_idea(store.root, "backlog", "color-themes")

        warnings = QueryService(store).find_inconsistent()

        assert [w.kind for w in warnings] == [IntegrityKind.DUPLICATE_ID]
        assert warnings[0].stages == (Stage.BACKLOG, Stage.DONE)

    def test_reports_invalid_metadata_by_folder(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "active", "broken", status="unknown")

        warnings = QueryService(store).find_inconsistent()

        assert [w.kind for w in warnings] == [IntegrityKind.INVALID_METADATA]
        assert warnings[0].idea_id == "broken"
        assert warnings[0].message.startswith("active/broken: ")

    def test_reports_missing_frontmatter(self, store: StageStore) -> None:
        folder = store.stage_dir(Stage.BACKLOG) / "plain"
        folder.mkdir()
        _ = (folder / "idea.md").write_text("# No front matter\n")

        warnings = QueryService(store).find_inconsistent()

        assert [w.kind for w in warnings] == [IntegrityKind.INVALID_METADATA]

    def test_reports_folder_mismatch(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "backlog", "folder-name", id="declared-id")

        warnings = QueryService(store).find_inconsistent()

        assert [w.kind for w in warnings] == [IntegrityKind.FOLDER_MISMATCH]
        assert warnings[0].idea_id == "folder-name"
        assert warnings[0].message == (
            "backlog/folder-name declares id 'declared-id'"
        )

    def test_sorted_by_idea_then_kind(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "backlog", "zeta", status="active")
        _ = write_idea(store.root, "active", "alpha", status="done")
        _ = write_idea(store.root, "done", "alpha", status="done")

        warnings = QueryService(store).find_inconsistent()

        assert [(w.idea_id, w.kind) for w in warnings] == [
            ("alpha", IntegrityKind.DUPLICATE_ID),
            ("alpha", IntegrityKind.STATUS_MISMATCH),
            ("zeta", IntegrityKind.STATUS_MISMATCH),
        ]

    def test_warnings_for_one_idea(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "backlog", "a", status="done")
        _ = write_idea(store.root, "backlog", "b", status="active")

        warnings = QueryService(store).warnings_for("b")

        assert [w.idea_id for w in warnings] == ["b"]

    def test_does_not_modify_store(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        path = write_idea(store.root, "backlog", "a", status="done") / "idea.md"
        before = path.read_text()

        _ = QueryService(store).find_inconsistent()

        assert path.read_text() == before


class TestUnmetDependencies:
    def test_reports_dependencies_not_done(
        self, store: StageStore, write_idea: "WriteIdeaFunc"
    ) -> None:
        _ = write_idea(store.root, "done", "finished", status="done")
        _ = write_idea(store.root, "active", "underway", status="active")
        _ = write_idea(
            store.root,
            "backlog",
            "target",
            dependsOn=["finished", "underway", "unknown"],
        )
        query = QueryService(store)

        unmet = query.unmet_dependencies(store.get("target"))

        assert unmet == ["underway", "unknown"]
