import asyncio

from app.schemas.analysis import AnalysisResult
from app.services.file_encoder import SelectedFile
from app.ui.session import AnalysisSession, Notification
from app.ui.state import Status


class RecordingAction:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def __call__(self, data_uri):
        self.calls.append(data_uri)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _broken_file():
    def opener():
        raise OSError("disk went away")

    return SelectedFile(name="cover.png", mime_type="image/png", size=10, opener=opener)


def test_select_image_creates_preview(png_bytes):
    session = AnalysisSession(action=RecordingAction(AnalysisResult.ok("x")))
    session.select_file(SelectedFile.from_bytes("cover.png", png_bytes))
    assert session.status == Status.FILE_SELECTED
    assert session.state.preview_url in session.previews.live
    assert session.previews.created == 1


def test_design_file_has_no_preview():
    session = AnalysisSession(action=RecordingAction(AnalysisResult.ok("x")))
    session.select_file(SelectedFile.from_bytes("board.fig", b"fig"))
    assert session.status == Status.FILE_SELECTED
    assert session.state.preview_url is None
    assert session.previews.created == 0


def test_rejected_file_notifies_without_call():
    action = RecordingAction(AnalysisResult.ok("x"))
    session = AnalysisSession(action=action)
    session.select_file(SelectedFile.from_bytes("big.png", b"x" * (10 * 1024 * 1024 + 1)))
    assert session.status == Status.IDLE
    assert session.notifications == [Notification("Error", "File is too large. Maximum size is 10MB.")]
    asyncio.run(session.analyze())
    assert action.calls == []
    assert session.previews.created == 0


def test_preview_released_once_on_remove_and_replace(png_bytes):
    session = AnalysisSession(action=RecordingAction(AnalysisResult.ok("x")))
    session.select_file(SelectedFile.from_bytes("a.png", png_bytes))
    first = session.state.preview_url
    session.select_file(SelectedFile.from_bytes("b.png", png_bytes))
    assert first not in session.previews.live
    session.remove_file()
    session.remove_file()
    assert session.previews.created == 2
    assert session.previews.revoked == 2
    assert session.previews.live == []


def test_analyze_success(png_bytes):
    action = RecordingAction(AnalysisResult.ok("Playful and loud."))
    session = AnalysisSession(action=action)
    session.select_file(SelectedFile.from_bytes("cover.png", png_bytes))

    state = asyncio.run(session.analyze())

    assert state.status == Status.SUCCESS
    assert state.analysis == "Playful and loud."
    assert len(action.calls) == 1
    assert action.calls[0].startswith("data:image/png;base64,")
    assert session.notifications == []


def test_analyze_failure_notifies(png_bytes):
    action = RecordingAction(AnalysisResult.fail("An error occurred during analysis: quota"))
    session = AnalysisSession(action=action)
    session.select_file(SelectedFile.from_bytes("cover.png", png_bytes))

    state = asyncio.run(session.analyze())

    assert state.status == Status.ERROR
    assert session.notifications == [
        Notification("Analysis Failed", "An error occurred during analysis: quota")
    ]


def test_read_failure_skips_call():
    action = RecordingAction(AnalysisResult.ok("x"))
    session = AnalysisSession(action=action)
    session.select_file(_broken_file())

    state = asyncio.run(session.analyze())

    assert state.status == Status.ERROR
    assert action.calls == []
    assert session.notifications == [Notification("Error", "Failed to read file.")]


def test_raising_action_never_leaves_loading(png_bytes):
    session = AnalysisSession(action=RecordingAction(RuntimeError("bug")))
    session.select_file(SelectedFile.from_bytes("cover.png", png_bytes))
    state = asyncio.run(session.analyze())
    assert state.status == Status.ERROR


def test_retry_after_error(png_bytes):
    action = RecordingAction(AnalysisResult.fail("An error occurred during analysis: timeout"))
    session = AnalysisSession(action=action)
    session.select_file(SelectedFile.from_bytes("cover.png", png_bytes))
    asyncio.run(session.analyze())
    action.result = AnalysisResult.ok("Second time lucky.")
    state = asyncio.run(session.analyze())
    assert state.status == Status.SUCCESS
    assert len(action.calls) == 2


def test_reset_after_success_returns_to_idle(png_bytes):
    session = AnalysisSession(action=RecordingAction(AnalysisResult.ok("x")))
    session.select_file(SelectedFile.from_bytes("cover.png", png_bytes))
    asyncio.run(session.analyze())
    session.reset()
    assert session.status == Status.IDLE
    assert session.previews.live == []


def test_reselecting_same_file_swaps_preview(png_bytes):
    session = AnalysisSession(action=RecordingAction(AnalysisResult.ok("x")))
    f = SelectedFile.from_bytes("cover.png", png_bytes)
    session.select_file(f)
    first = session.state.preview_url
    session.select_file(f)
    assert session.state.preview_url != first
    assert session.previews.live == [session.state.preview_url]
    assert session.previews.revoked == 1


def test_rejected_replacement_keeps_current_file(png_bytes):
    session = AnalysisSession(action=RecordingAction(AnalysisResult.ok("x")))
    session.select_file(SelectedFile.from_bytes("cover.png", png_bytes))
    preview = session.state.preview_url
    session.select_file(SelectedFile.from_bytes("clip.gif", b"GIF89a"))
    assert session.status == Status.FILE_SELECTED
    assert session.state.file.name == "cover.png"
    assert session.state.preview_url == preview
    assert session.notifications[-1].description == "Invalid file type. Please upload a PNG, JPG, or FIG file."


def test_design_file_is_sent_without_xfig_type():
    action = RecordingAction(AnalysisResult.ok("Clean system, strong hierarchy."))
    session = AnalysisSession(action=action)
    session.select_file(SelectedFile.from_bytes("board.fig", b"figma"))
    asyncio.run(session.analyze())
    assert action.calls == ["data:application/octet-stream;base64,ZmlnbWE="]
