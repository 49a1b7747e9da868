from hanzicard.domain.models import PhraseInfo
from hanzicard.infrastructure.dictionary import (
    CommonPhrases,
    LocalDictionary,
    load_default_dictionary,
    load_default_phrases,
)


def test_bundled_dictionary_loads():
    d = load_default_dictionary()
    assert len(d) > 40
    info = d.lookup("中")
    assert info.pinyin == "zhōng"
    assert info.hsk == 1
    assert info.strokes == 4
    assert "中国 (China)" in info.examples
    assert "中" in d
    assert d.lookup("龘") is None


def test_bundled_dictionary_entries_have_no_components():
    d = load_default_dictionary()
    assert all(d.lookup(c).components == () for c in "中国人你好")


def test_load_custom_dictionary(tmp_path):
    path = tmp_path / "dict.yaml"
    path.write_text(
        "落:\n  pinyin: luò\n  meaning: to fall\n  hsk: 2\n  examples: [落下]\nbad: 3\n",
        encoding="utf-8",
    )
    d = LocalDictionary.load(path)
    assert len(d) == 1
    assert d.lookup("落").examples == ("落下",)
    assert d.lookup("落").radical == ""


def test_bundled_phrases():
    phrases = load_default_phrases()
    assert len(phrases) > 40
    assert phrases.lookup("出口").meaning == "exit"


def test_find_phrases_longest_first():
    phrases = CommonPhrases(
        {
            "小心": PhraseInfo("xiǎo xīn", "careful"),
            "小心地滑": PhraseInfo("xiǎo xīn dì huá", "caution, wet floor"),
            "出口": PhraseInfo("chū kǒu", "exit"),
        }
    )
    found = [p for p, _ in phrases.find_phrases("小心地滑")]
    assert found == ["小心地滑", "小心"]
    assert phrases.find_phrases("hello") == []
