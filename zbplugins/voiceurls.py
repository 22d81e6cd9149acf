"""Speech synthesis request URLs for the Japanese, Korean and Chinese voices."""

from __future__ import annotations

import unicodedata
from urllib.parse import quote_plus

JP_API = "https://moegoe.azurewebsites.net/api/speak?text={text}&id={id}"
KR_API = "https://moegoe.azurewebsites.net/api/speakkr?text={text}&id={id}"
CN_API = "http://267978.proxy.nscc-gz.cn:8888?text={text}&speaker={speaker}"

JAPANESE_SPEAKERS = {"宁宁": 0, "爱瑠": 1, "芳乃": 2, "茉子": 3, "丛雨": 4, "小春": 5, "七海": 6}
KOREAN_SPEAKERS = {"Sua": 0, "Mimiru": 1, "Arin": 2, "Yeonhwa": 3, "Yuhwa": 4, "Seonbae": 5}
CHINESE_SPEAKERS = frozenset(
    "派蒙|空|荧|阿贝多|枫原万叶|温迪|八重神子|纳西妲|钟离|诺艾尔|凝光|托马|北斗|莫娜|荒泷一斗|"
    "提纳里|芭芭拉|艾尔海森|雷电将军|赛诺|琴|班尼特|五郎|神里绫华|迪希雅|夜兰|辛焱|安柏|宵宫|云堇|"
    "妮露|烟绯|鹿野院平藏|凯亚|达达利亚|迪卢克|可莉|早柚|香菱|重云|刻晴|久岐忍|珊瑚宫心海|迪奥娜|"
    "戴因斯雷布|魈|神里绫人|丽莎|优菈|凯瑟琳|雷泽|菲谢尔|九条裟罗|甘雨|行秋|胡桃|迪娜泽黛|柯莱|申鹤|"
    "砂糖|萍姥姥|奥兹|罗莎莉亚|式大将|哲平|坎蒂丝|托克|留云借风真君|昆钧|塞琉斯|多莉|大肉丸|莱依拉|"
    "散兵|拉赫曼|杜拉夫|阿守|玛乔丽|纳比尔|海芭夏|九条镰治|阿娜耶|阿晃|阿扎尔|七七|博士|白术|埃洛伊|"
    "大慈树王|女士|丽塔|失落迷迭|缭乱星棘|伊甸|伏特加女孩|狂热蓝调|莉莉娅|萝莎莉娅|八重樱|八重霞|卡莲|"
    "第六夜想曲|卡萝尔|姬子|极地战刃|布洛妮娅|次生银翼|理之律者|迷城骇兔|希儿|魇夜星渊|黑希儿|"
    "帕朵菲莉丝|天元骑英|幽兰黛尔|德丽莎|月下初拥|朔夜观星|暮光骑士|明日香|李素裳|格蕾修|梅比乌斯|"
    "渡鸦|人之律者|爱莉希雅|爱衣|天穹游侠|琪亚娜|空之律者|薪炎之律者|云墨丹心|符华|识之律者|维尔薇|"
    "芽衣|雷之律者|阿波尼亚".split("|")
)

_WHITESPACE = "\t\n\f\r "
_JP_RANGES = (
    (0x3005, 0x3005),
    (0x3040, 0x30FF),
    (0x4E00, 0x9FFF),
    (0xFF11, 0xFF19),
    (0xFF21, 0xFF3A),
    (0xFF41, 0xFF5A),
    (0xFF66, 0xFF9D),
)
_KR_RANGES = ((0x3131, 0x3163), (0xAC00, 0xD7FF))
_CN_RANGES = ((0x4E00, 0x9FA5),)


def _in_ranges(c: str, ranges: tuple[tuple[int, int], ...]) -> bool:
    code = ord(c)
    return any(lo <= code <= hi for lo, hi in ranges)


def _is_punct(c: str) -> bool:
    return unicodedata.category(c).startswith("P")


def _is_alnum_ascii(c: str) -> bool:
    return c.isascii() and c.isalnum()


def _check_text(text: str, ranges: tuple[tuple[int, int], ...], latin: bool) -> None:
    if not text:
        raise ValueError("empty text")
    for c in text:
        if c in _WHITESPACE or _is_punct(c) or _in_ranges(c, ranges):
            continue
        if latin and _is_alnum_ascii(c):
            continue
        raise ValueError(f"unsupported character: {c!r}")


def speaker_id(name: str) -> int:
    """Voice id of a Japanese or Korean speaker; KeyError if unknown."""
    if name in JAPANESE_SPEAKERS:
        return JAPANESE_SPEAKERS[name]
    if name in KOREAN_SPEAKERS:
        return KOREAN_SPEAKERS[name]
    raise KeyError(name)


def japanese_url(speaker: str, text: str) -> str:
    """URL of ``text`` spoken by a Japanese voice."""
    if speaker not in JAPANESE_SPEAKERS:
        raise ValueError(f"not a Japanese speaker: {speaker}")
    _check_text(text, _JP_RANGES, latin=True)
    return JP_API.format(text=quote_plus(text, safe=""), id=JAPANESE_SPEAKERS[speaker])


def korean_url(speaker: str, text: str) -> str:
    """URL of ``text`` spoken by a Korean voice."""
    if speaker not in KOREAN_SPEAKERS:
        raise ValueError(f"not a Korean speaker: {speaker}")
    _check_text(text, _KR_RANGES, latin=True)
    return KR_API.format(text=quote_plus(text, safe=""), id=KOREAN_SPEAKERS[speaker])


def chinese_url(speaker: str, text: str) -> str:
    """URL of ``text`` spoken by a Chinese voice."""
    if speaker not in CHINESE_SPEAKERS:
        raise ValueError(f"not a Chinese speaker: {speaker}")
    _check_text(text, _CN_RANGES, latin=False)
    return CN_API.format(text=quote_plus(text, safe=""), speaker=speaker)