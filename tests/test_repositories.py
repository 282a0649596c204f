"""
Test the study and analysis repositories.
"""

import asyncio

from conftest import make_analysis, make_study

from dental_portal.services.analysis_repository import (
    ANALYSES_PATH,
    REFRESH_PATH,
    SEND_PATH,
    AnalysisRepository,
)
from dental_portal.services.study_repository import STUDIES_PATH, StudyRepository


async def _wait_for_calls(portal, method, path, count):
    while portal.count(method, path) < count:
        await asyncio.sleep(0)


def test_list_studies(portal, connect):
    portal.studies = [make_study(2, "orthanc-2"), make_study(1)]

    async def scenario():
        async with connect() as api:
            repo = StudyRepository(api)
            return repo, await repo.list_studies()

    repo, outcome = asyncio.run(scenario())
    assert outcome.success
    assert [s.id for s in repo.studies] == [2, 1]
    assert repo.get(2).orthanc_study_id == "orthanc-2"
    assert repo.get(1).orthanc_study_id is None


def test_failed_list_keeps_previous_collection(portal, connect):
    portal.studies = [make_study(1)]

    async def scenario():
        async with connect() as api:
            repo = StudyRepository(api)
            await repo.list_studies()
            portal.fail(STUDIES_PATH, 500, {"error": "Failed to fetch studies"})
            return repo, await repo.list_studies()

    repo, outcome = asyncio.run(scenario())
    assert not outcome.success
    assert outcome.message == "Failed to fetch studies"
    assert [s.id for s in repo.studies] == [1]


def test_listeners_hear_collection_changes(portal, connect):
    portal.analyses = [make_analysis(9, 1)]
    heard = []

    async def scenario():
        async with connect() as api:
            repo = AnalysisRepository(api)
            unsubscribe = repo.subscribe(lambda: heard.append(len(repo.analyses)))
            await repo.list_analyses()
            unsubscribe()
            await repo.list_analyses()

    asyncio.run(scenario())
    assert heard == [1]


def test_refresh_replaces_only_matching_entry(portal, connect):
    portal.analyses = [make_analysis(1, 10), make_analysis(9, 20), make_analysis(3, 30)]
    portal.refresh_updates[9] = {
        "status": "complete",
        "complete": True,
        "pdf_url": "https://reports/9.pdf",
        "diagnoses": {"diagnoses": [{"tooth_number": 11, "attributes": []}]},
    }

    async def scenario():
        async with connect() as api:
            repo = AnalysisRepository(api)
            await repo.list_analyses()
            before = list(repo.analyses)
            outcome = await repo.refresh_analysis(9)
            return before, repo.analyses, outcome

    before, after, outcome = asyncio.run(scenario())
    assert outcome.success
    assert outcome.value.complete is True
    assert [a.id for a in after] == [1, 9, 3]
    assert after[0] is before[0]
    assert after[2] is before[2]
    assert after[1].pdf_url == "https://reports/9.pdf"
    assert after == [outcome.value if a.id == 9 else a for a in before]


def test_failed_refresh_leaves_entry_untouched(portal, connect):
    portal.analyses = [make_analysis(9, 20)]
    path = REFRESH_PATH.format(analysis_id=9)

    async def scenario():
        async with connect() as api:
            repo = AnalysisRepository(api)
            await repo.list_analyses()
            before = repo.analyses[0]
            portal.fail(path, 500, {"error": "Failed to fetch from Diagnocat"})
            outcome = await repo.refresh_analysis(9)
            return before, repo, outcome

    before, repo, outcome = asyncio.run(scenario())
    assert not outcome.success
    assert outcome.error_kind == "request"
    assert outcome.message == "Failed to fetch from Diagnocat"
    assert repo.analyses == [before]
    assert 9 not in repo.refreshing


def test_duplicate_refresh_is_ignored_while_pending(portal, connect):
    portal.analyses = [make_analysis(9, 20), make_analysis(4, 21)]
    path_9 = REFRESH_PATH.format(analysis_id=9)
    path_4 = REFRESH_PATH.format(analysis_id=4)

    async def scenario():
        async with connect() as api:
            repo = AnalysisRepository(api)
            await repo.list_analyses()
            gate = portal.gate(path_9)
            first = asyncio.ensure_future(repo.refresh_analysis(9))
            await _wait_for_calls(portal, "GET", path_9, 1)

            duplicate = await repo.refresh_analysis(9)
            other = await repo.refresh_analysis(4)
            busy_while_pending = 9 in repo.refreshing

            gate.set()
            return duplicate, other, busy_while_pending, await first, repo

    duplicate, other, busy, first, repo = asyncio.run(scenario())
    assert duplicate.ignored is True
    assert other.success is True
    assert busy is True
    assert first.success is True
    assert portal.count("GET", path_9) == 1
    assert portal.count("GET", path_4) == 1
    assert len(repo.refreshing) == 0


def test_send_is_per_study_and_independent(portal, connect):
    portal.studies = [make_study(1, "orthanc-1"), make_study(2, "orthanc-2")]
    portal.rejected_studies.add(1)

    async def scenario():
        async with connect() as api:
            repo = AnalysisRepository(api)
            gate = portal.gate(SEND_PATH)
            first = asyncio.ensure_future(repo.send_study_to_analysis(1))
            await _wait_for_calls(portal, "POST", SEND_PATH, 1)

            duplicate = await repo.send_study_to_analysis(1)
            second = asyncio.ensure_future(repo.send_study_to_analysis(2))
            await _wait_for_calls(portal, "POST", SEND_PATH, 2)

            gate.set()
            return duplicate, await first, await second, repo

    duplicate, first, second, repo = asyncio.run(scenario())
    assert duplicate.ignored is True
    assert first.success is False
    assert first.message == "Study not found"
    assert second.success is True
    assert portal.count("POST", SEND_PATH) == 2
    assert [a.study_id for a in repo.analyses] == [2]
    assert len(repo.sending) == 0


def test_send_refused_when_study_already_has_analysis(portal, connect):
    portal.analyses = [make_analysis(9, 1)]

    async def scenario():
        async with connect() as api:
            repo = AnalysisRepository(api)
            await repo.list_analyses()
            return await repo.send_study_to_analysis(1)

    outcome = asyncio.run(scenario())
    assert outcome.error_kind == "validation"
    assert portal.count("POST", SEND_PATH) == 0


def test_send_acknowledgement_reloads_analyses(portal, connect):
    portal.studies = [make_study(1, "orthanc-1")]
    portal.send_returns_analysis = False

    async def scenario():
        async with connect() as api:
            repo = AnalysisRepository(api)
            outcome = await repo.send_study_to_analysis(1)
            return outcome, repo

    outcome, repo = asyncio.run(scenario())
    assert outcome.success
    assert portal.count("GET", ANALYSES_PATH) == 1
    assert repo.find_for_study(1) is not None


def test_duplicate_analyses_are_logged_once_per_fetch(portal, connect, caplog):
    portal.analyses = [make_analysis(30, 1), make_analysis(31, 1), make_analysis(32, 2)]

    async def scenario():
        async with connect() as api:
            repo = AnalysisRepository(api)
            with caplog.at_level("WARNING"):
                await repo.list_analyses()
            return repo

    repo = asyncio.run(scenario())
    warnings = [r for r in caplog.records if r.levelname == "WARNING"]
    assert len(warnings) == 1
    assert "Study 1 has 2 analyses" in warnings[0].getMessage()
    assert [a.id for a in repo.analyses] == [30, 31, 32]
