import os

import pytest

from manuscript_guard.moderation import (
    AnalysisResult,
    Chapter,
    ChapterSplitter,
    ContentAnalyzer,
    InvalidInputError,
    ModerationConfig,
    ModerationService,
    SeverityLevel,
    read_lines,
)


def _config(**overrides) -> ModerationConfig:
    overrides.setdefault(
        "severity_patterns",
        {
            SeverityLevel.MILD: ("mild",),
            SeverityLevel.MODERATE: ("mod",),
            SeverityLevel.SEVERE: ("bad",),
        },
    )
    return ModerationConfig(**overrides)


def test_reader_normalizes_lines():
    text = "\ufeff  first line \r\n\n\u3000\u3000second\u3000line\n   \nthird"
    assert read_lines(text).to_list() == ["first line", "secondline", "third"]


def test_reader_streams_file_and_is_restartable(tmp_path):
    path = tmp_path / "book.txt"
    path.write_bytes("第一章 开端\r\n正文\r\n".encode("gbk"))
    source = read_lines(path, "gbk")
    assert source.to_list() == ["第一章 开端", "正文"]
    assert list(source) == ["第一章 开端", "正文"]


def test_reader_replaces_malformed_bytes():
    lines = read_lines(b"ok\n\xff\xfebroken\n").to_list()
    assert lines[0] == "ok"
    assert lines[1].endswith("broken")
    assert "\ufffd" in lines[1]


def test_config_rejects_invalid_values():
    with pytest.raises(ValueError):
        ModerationConfig(line_score_threshold=-1)
    with pytest.raises(ValueError):
        ModerationConfig(fallback_chunk_size=0)
    with pytest.raises(ValueError):
        ModerationConfig(target_charset="no-such-charset")
    with pytest.raises(ValueError):
        ModerationConfig(ad_patterns=("(unclosed",))


def test_config_compiles_patterns_once():
    config = _config()
    assert config.compiled is config.compiled
    assert isinstance(config.severity_patterns[SeverityLevel.SEVERE], tuple)


def test_severity_weights():
    assert [level.weight for level in SeverityLevel] == [1, 2, 3]


def test_splitter_uses_chinese_chapter_headings():
    lines = ["第一章 开端", "The road was quiet.", "第二章 旅途", "They walked on.", "第三章 归来", "Home at last."]
    chapters = ChapterSplitter(ModerationConfig()).split(lines)
    assert [chapter.title for chapter in chapters] == ["第一章 开端", "第二章 旅途", "第三章 归来"]
    assert chapters[0].lines == ("第一章 开端", "The road was quiet.")
    assert [chapter.index for chapter in chapters] == [0, 1, 2]


def test_splitter_strips_markdown_heading_marks():
    lines = ["# One", "alpha", "## Two", "beta", "# Three", "gamma"]
    chapters = ChapterSplitter(ModerationConfig()).split(lines)
    assert [chapter.title for chapter in chapters] == ["One", "Two", "Three"]


def test_splitter_keeps_preamble_as_leading_chapter():
    lines = ["A short preface", "第一章 开端", "body", "第二章 旅途", "more body"]
    chapters = ChapterSplitter(ModerationConfig()).split(lines)
    assert chapters[0].title == "A short preface"
    assert chapters[0].lines == ("A short preface",)
    assert len(chapters) == 3


def test_splitter_ignores_sentence_like_headings():
    lines = ["第一章 开端", "body", "第二章 旅途。", "still chapter one"]
    chapters = ChapterSplitter(ModerationConfig()).split(lines)
    assert len(chapters) == 1
    assert chapters[0].lines[-1] == "still chapter one"


def test_splitter_adds_side_story_headings():
    lines = ["第一章 开端", "body", "第二章 旅途", "body", "番外一", "extra"]
    chapters = ChapterSplitter(ModerationConfig()).split(lines)
    assert [chapter.title for chapter in chapters] == ["第一章 开端", "第二章 旅途", "番外一"]


def test_splitter_drops_ad_lines_from_bodies():
    lines = ["第一章 开端", "关注公众号获取更多", "body", "-" * 12]
    chapters = ChapterSplitter(ModerationConfig()).split(lines)
    assert chapters[0].lines == ("第一章 开端", "body")


def test_splitter_falls_back_to_fixed_chunks():
    lines = [f"plain line {i}" for i in range(45)]
    chapters = ChapterSplitter(ModerationConfig(fallback_chunk_size=20)).split(lines)
    assert [chapter.title for chapter in chapters] == ["Part 1", "Part 2", "Part 3"]
    assert len(chapters[2].lines) == 5


def test_splitter_falls_back_for_long_text_with_few_headings():
    lines = ["第一章 开端"] + ["x" * 50] * 10 + ["第二章 旅途"] + ["y" * 50] * 10
    config = ModerationConfig(fallback_min_characters=100, fallback_chunk_size=10)
    chapters = ChapterSplitter(config).split(lines)
    assert chapters[0].title == "Part 1"
    assert len(chapters) == 3


def test_splitter_returns_nothing_for_empty_input():
    assert ChapterSplitter(ModerationConfig()).split([]) == []


def test_score_line_weights_every_level_and_strips_noise():
    analyzer = ContentAnalyzer(_config())
    assert analyzer.score_line("bad mod mild") == 6.0
    assert analyzer.score_line("b-a-d") == 3.0
    assert analyzer.score_line("nothing here") == 0.0


def test_lines_below_threshold_do_not_count():
    analyzer = ContentAnalyzer(_config())
    analysis = analyzer.analyze_chapter(Chapter(index=0, title="t", lines=("mild", "bad")))
    assert analysis.score == 3.0
    assert analysis.flagged_lines == ("bad",)


def test_chapter_threshold_is_inclusive():
    chapter = Chapter(index=0, title="t", lines=("bad bad",))
    assert ContentAnalyzer(_config(chapter_score_threshold=6.0)).analyze_chapter(chapter).is_flagged
    assert not ContentAnalyzer(_config(chapter_score_threshold=7.0)).analyze_chapter(chapter).is_flagged


def test_total_score_includes_unflagged_chapters():
    chapters = [
        Chapter(index=0, title="a", lines=("bad",)),
        Chapter(index=1, title="b", lines=("bad bad",)),
        Chapter(index=2, title="c", lines=("calm",)),
    ]
    result = ContentAnalyzer(_config()).analyze(chapters)
    assert result.total_score == 9.0
    assert result.flagged_chapters == 1
    assert [detail.index for detail in result.details] == [1]
    assert 0.0 <= result.flagged_rate <= 1.0
    assert result.flagged_rate == pytest.approx(1 / 3)


def test_summary_is_truncated_to_max_length():
    chapters = [Chapter(index=0, title="t", lines=("abcdef", "ghijkl"))]
    result = ContentAnalyzer(_config(summary_max_length=10)).analyze(chapters)
    assert result.summary == "abcdefghij"


def test_flagged_lines_limit():
    chapter = Chapter(index=0, title="t", lines=("bad", "bad bad", "bad bad bad"))
    analysis = ContentAnalyzer(_config(explain_flagged_lines_limit=2)).analyze_chapter(chapter)
    assert analysis.flagged_lines == ("bad", "bad bad")
    assert analysis.score == 18.0
    assert analysis.flagged_lines_count == 3
    assert analysis.to_dict()["flaggedLinesCount"] == 3


def test_parallel_and_sequential_scoring_agree():
    chapters = [Chapter(index=i, title=str(i), lines=("bad " * (i % 4),)) for i in range(20)]
    parallel = ContentAnalyzer(_config(parallel_chapter_min_count=2, max_workers=4)).analyze(chapters)
    sequential = ContentAnalyzer(_config(parallel_chapter_analysis=False)).analyze(chapters)
    assert parallel == sequential


def test_quick_score_counts_flagged_lines():
    quick = ContentAnalyzer(_config()).analyze_chapter_quick(["bad", "mild", "bad bad"])
    assert quick.score == 9.0
    assert quick.flagged_lines_count == 2
    assert quick.is_flagged


def test_analyze_without_chapters_is_empty():
    assert ContentAnalyzer(_config()).analyze([]) == AnalysisResult.empty()


def test_clean_document_with_three_chapters():
    text = "\n".join(
        ["第一章 开端", "The road was quiet.", "第二章 旅途", "They walked on.", "第三章 归来", "Home at last."]
    )
    result = ModerationService().analyze_text(text)
    assert result.total_chapters == 3
    assert result.flagged_chapters == 0
    assert result.total_score == 0


def test_single_severe_line_flags_chapter():
    result = ModerationService(_config()).analyze_text("第一章 开端\nbad bad bad bad")
    assert result.flagged_chapters == 1
    assert result.details[0].score == 12.0
    assert result.details[0].flagged_lines == ("bad bad bad bad",)


def test_document_without_headings_is_chunked():
    text = "\n".join(f"plain line {i}" for i in range(5000))
    result = ModerationService(ModerationConfig(fallback_chunk_size=20)).analyze_text(text)
    assert result.total_chapters == 250


def test_ad_only_document_has_no_content():
    text = "关注公众号\n作品来自互联网\n版权归作者所有\n" + "-" * 20
    result = ModerationService().analyze_text(text)
    assert result.total_characters == 0
    assert result.summary == ""
    assert result.total_score == 0


def test_ad_lines_never_score():
    result = ModerationService(_config()).analyze_text("第一章 开端\n公众号 bad bad bad bad")
    assert result.total_score == 0
    assert result.total_characters == len("第一章 开端")


def test_analyze_text_is_idempotent():
    service = ModerationService(_config())
    text = "第一章 开端\nbad bad\n第二章 旅途\nmod mod mod"
    assert service.analyze_text(text) == service.analyze_text(text)


def test_service_validates_input(tmp_path):
    service = ModerationService()
    with pytest.raises(InvalidInputError):
        service.analyze_text("   \n ")
    with pytest.raises(InvalidInputError):
        service.analyze_file(tmp_path / "missing.txt")
    with pytest.raises(InvalidInputError):
        service.analyze_file(tmp_path)
    with pytest.raises(InvalidInputError):
        service.analyze_bytes(b"")


def test_service_analyzes_file(tmp_path):
    path = tmp_path / "novel.txt"
    path.write_text("第一章 开端\nbad bad\n第二章 旅途\ncalm\n", encoding="utf-8")
    result = ModerationService(_config()).analyze_file(path)
    assert result.total_chapters == 2
    assert result.flagged_chapters == 1
    assert result.flagged_rate_percent == "50.0%"
    assert result.to_dict()["details"][0]["isFlagged"] is True


def test_text_and_file_split_lines_alike(tmp_path):
    content = "第一章 开端\nbad\x0cbad\r\n第二章 旅途\rcalm still calm\n"
    path = tmp_path / "novel.txt"
    path.write_bytes(content.encode("utf-8"))
    service = ModerationService(_config(line_score_threshold=6.0))

    assert read_lines(content).to_list() == read_lines(path).to_list()
    assert read_lines(content.encode("utf-8")).to_list() == read_lines(path).to_list()
    from_text = service.analyze_text(content)
    assert from_text == service.analyze_file(path)
    assert from_text.total_score == 6.0


def test_config_is_read_only_and_hashable():
    config = _config()
    with pytest.raises(TypeError):
        config.severity_patterns[SeverityLevel.SEVERE] = ("calm",)
    with pytest.raises(AttributeError):
        config.line_score_threshold = 0.0
    assert ContentAnalyzer(config).score_line("calm") == 0.0
    assert hash(config) == hash(_config())
    assert config == _config()


def test_analyze_text_rejects_empty_string():
    with pytest.raises(InvalidInputError):
        ModerationService().analyze_text("")


@pytest.mark.skipif(not hasattr(os, "geteuid") or os.geteuid() == 0, reason="needs file permissions to apply")
def test_unreadable_file_raises_os_error(tmp_path):
    path = tmp_path / "locked.txt"
    path.write_text("第一章 开端\ncalm\n", encoding="utf-8")
    path.chmod(0)
    try:
        with pytest.raises(OSError):
            ModerationService().analyze_file(path)
    finally:
        path.chmod(0o644)


def test_sentence_punctuation_blocks_headings_in_the_split():
    lines = ["第一章 开端", "body", "第二章 旅途！", "第三章 归来?", "more body"]
    chapters = ChapterSplitter(ModerationConfig()).split(lines)
    assert [chapter.title for chapter in chapters] == ["第一章 开端"]
    assert len(chapters[0].lines) == 5


def test_preamble_does_not_count_toward_heading_minimum():
    lines = ["A short preface"] + ["第一章 开端"] + ["x" * 50] * 5 + ["第二章 旅途"] + ["y" * 50] * 5
    config = ModerationConfig(min_chapter_count=3, fallback_min_characters=100, fallback_chunk_size=20)
    chapters = ChapterSplitter(config).split(lines)
    assert [chapter.title for chapter in chapters] == ["Part 1"]
