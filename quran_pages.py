"""
quran_pages.py

Page arithmetic for the 604-page Madani mushaf.

Everything here is pure: given a page number, work out which surah (or group
of short surahs) it falls in, which juz it belongs to and how far through the
mushaf it is. The tracker web app calls derive()/rank() on the stored records
before sending them to the browser.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Any, Dict, Iterable, List, NamedTuple, Tuple

TOTAL_PAGES = 604
TOTAL_JUZ = 30
NAME_SEPARATOR = " / "


class Section(NamedTuple):
    index: int
    name: str
    arabic: str
    start: int
    end: int


# -------------------------------
# Surah start pages
# -------------------------------
# One entry per distinct start page. Short surahs that begin on the same page
# share an entry and are displayed together.
SURAH_STARTS: Tuple[Tuple[int, Tuple[str, ...], Tuple[str, ...]], ...] = (
    (1, ("Al-Fatiha",), ("الفاتحة",)),
    (2, ("Al-Baqarah",), ("البقرة",)),
    (49, ("Aal-Imran",), ("آل عمران",)),
    (76, ("An-Nisa",), ("النساء",)),
    (105, ("Al-Maidah",), ("المائدة",)),
    (127, ("Al-Anam",), ("الأنعام",)),
    (150, ("Al-Araf",), ("الأعراف",)),
    (176, ("Al-Anfal",), ("الأنفال",)),
    (186, ("At-Tawbah",), ("التوبة",)),
    (207, ("Yunus",), ("يونس",)),
    (220, ("Hud",), ("هود",)),
    (234, ("Yusuf",), ("يوسف",)),
    (248, ("Ar-Rad",), ("الرعد",)),
    (254, ("Ibrahim",), ("إبراهيم",)),
    (261, ("Al-Hijr",), ("الحجر",)),
    (266, ("An-Nahl",), ("النحل",)),
    (281, ("Al-Isra",), ("الإسراء",)),
    (292, ("Al-Kahf",), ("الكهف",)),
    (304, ("Maryam",), ("مريم",)),
    (311, ("Ta-Ha",), ("طه",)),
    (321, ("Al-Anbiya",), ("الأنبياء",)),
    (331, ("Al-Hajj",), ("الحج",)),
    (341, ("Al-Muminun",), ("المؤمنون",)),
    (349, ("An-Nur",), ("النور",)),
    (357, ("Al-Furqan",), ("الفرقان",)),
    (366, ("Ash-Shuara",), ("الشعراء",)),
    (376, ("An-Naml",), ("النمل",)),
    (384, ("Al-Qasas",), ("القصص",)),
    (395, ("Al-Ankabut",), ("العنكبوت",)),
    (403, ("Ar-Rum",), ("الروم",)),
    (410, ("Luqman",), ("لقمان",)),
    (414, ("As-Sajdah",), ("السجدة",)),
    (417, ("Al-Ahzab",), ("الأحزاب",)),
    (427, ("Saba",), ("سبأ",)),
    (433, ("Fatir",), ("فاطر",)),
    (439, ("Ya-Sin",), ("يس",)),
    (445, ("As-Saffat",), ("الصافات",)),
    (452, ("Sad",), ("ص",)),
    (457, ("Az-Zumar",), ("الزمر",)),
    (466, ("Ghafir",), ("غافر",)),
    (476, ("Fussilat",), ("فصلت",)),
    (482, ("Ash-Shura",), ("الشورى",)),
    (488, ("Az-Zukhruf",), ("الزخرف",)),
    (495, ("Ad-Dukhan",), ("الدخان",)),
    (496, ("Al-Jathiyah",), ("الجاثية",)),
    (501, ("Al-Ahqaf",), ("الأحقاف",)),
    (506, ("Muhammad",), ("محمد",)),
    (510, ("Al-Fath",), ("الفتح",)),
    (514, ("Al-Hujurat",), ("الحجرات",)),
    (517, ("Qaf",), ("ق",)),
    (519, ("Adh-Dhariyat",), ("الذاريات",)),
    (522, ("At-Tur",), ("الطور",)),
    (525, ("An-Najm",), ("النجم",)),
    (527, ("Al-Qamar",), ("القمر",)),
    (530, ("Ar-Rahman",), ("الرحمن",)),
    (533, ("Al-Waqi’ah",), ("الواقعة",)),
    (536, ("Al-Hadid",), ("الحديد",)),
    (541, ("Al-Mujadila",), ("المجادلة",)),
    (544, ("Al-Hashr",), ("الحشر",)),
    (546, ("Al-Mumtahanah",), ("الممتحنة",)),
    (550, ("As-Saff",), ("الصف",)),
    (552, ("Al-Jumuah",), ("الجمعة",)),
    (553, ("Al-Munafiqun",), ("المنافقون",)),
    (555, ("At-Taghabun",), ("التغابن",)),
    (557, ("At-Talaq",), ("الطلاق",)),
    (559, ("At-Tahrim",), ("التحريم",)),
    (561, ("Al-Mulk",), ("الملك",)),
    (563, ("Al-Qalam",), ("القلم",)),
    (565, ("Al-Haqqah",), ("الحاقة",)),
    (567, ("Al-Ma’arij",), ("المعارج",)),
    (569, ("Nuh",), ("نوح",)),
    (571, ("Al-Jinn",), ("الجن",)),
    (573, ("Al-Muzzammil",), ("المزمل",)),
    (574, ("Al-Muddathir",), ("المدثر",)),
    (576, ("Al-Qiyamah",), ("القيامة",)),
    (577, ("Al-Insan",), ("الإنسان",)),
    (579, ("Al-Mursalat",), ("المرسلات",)),
    (581, ("An-Naba",), ("النبأ",)),
    (582, ("An-Naziat",), ("النازعات",)),
    (584, ("Abasa",), ("عبس",)),
    (585, ("At-Takwir",), ("التكوير",)),
    (586, ("Al-Infitar",), ("الإنفطار",)),
    (587, ("Al-Mutaffifin",), ("المطففين",)),
    (588, ("Al-Inshiqaq",), ("الانشقاق",)),
    (589, ("Al-Buruj",), ("البروج",)),
    (590, ("At-Tariq",), ("الطارق",)),
    (591, ("Al-Ala", "Al-Ghashiyah"), ("الأعلى", "الغاشية")),
    (592, ("Al-Fajr",), ("الفجر",)),
    (593, ("Al-Balad",), ("البلد",)),
    (594, ("Ash-Shams",), ("الشمس",)),
    (595, ("Al-Layl", "Ad-Duha"), ("الليل", "الضحى")),
    (596, ("Ash-Sharh", "At-Tin"), ("الشرح", "التين")),
    (597, ("Al-Alaq",), ("العلق",)),
    (598, ("Al-Qadr", "Al-Bayyinah"), ("القدر", "البينة")),
    (599, ("Az-Zalzalah", "Al-Adiyat"), ("الزلزلة", "العاديات")),
    (600, ("Al-Qari’ah", "At-Takathur"), ("القارعة", "التكاثر")),
    (601, ("Al-Asr", "Al-Humazah", "Al-Fil"), ("العصر", "الهمزة", "الفيل")),
    (602, ("Quraysh", "Al-Ma’un", "Al-Kawthar"), ("قريش", "الماعون", "الكوثر")),
    (603, ("Al-Kafirun", "An-Nasr", "Al-Masad"), ("الكافرون", "النصر", "المسد")),
    (604, ("Al-Ikhlas", "Al-Falaq", "An-Nas"), ("الإخلاص", "الفلق", "الناس")),
)


def _check_table() -> None:
    if not SURAH_STARTS or SURAH_STARTS[0][0] != 1:
        raise ValueError("Surah table must start on page 1")
    prev = 0
    for start, names, arabic in SURAH_STARTS:
        if start <= prev:
            raise ValueError(f"Surah table not strictly increasing at page {start}")
        if start > TOTAL_PAGES:
            raise ValueError(f"Surah start page {start} past end of mushaf")
        if not names or len(names) != len(arabic):
            raise ValueError(f"Surah names/arabic mismatch at page {start}")
        prev = start


_check_table()

_STARTS: List[int] = [entry[0] for entry in SURAH_STARTS]


def clamp_page(page: Any) -> int:
    if isinstance(page, int):
        p = page
    else:
        try:
            number = float(page)
        except (TypeError, ValueError):
            return 1
        if number != number:  # NaN
            return 1
        if number in (float("inf"), float("-inf")):
            return TOTAL_PAGES if number > 0 else 1
        p = int(number)
    if p < 1:
        return 1
    return min(p, TOTAL_PAGES)


def find_section(page: Any) -> Section:
    """Return the section whose start page is the greatest one <= page."""
    p = clamp_page(page)
    idx = bisect_right(_STARTS, p) - 1

    start, names, arabic = SURAH_STARTS[idx]
    if idx + 1 < len(SURAH_STARTS):
        end = SURAH_STARTS[idx + 1][0] - 1
    else:
        end = TOTAL_PAGES

    return Section(
        index=idx,
        name=NAME_SEPARATOR.join(names),
        arabic=NAME_SEPARATOR.join(arabic),
        start=start,
        end=end,
    )


def section_name(page: Any) -> str:
    return find_section(page).name


def section_arabic(page: Any) -> str:
    return find_section(page).arabic


def juz_for_page(page: Any) -> int:
    # ceil(page / (604 / 30)) in integer arithmetic so page 604 lands on 30
    p = clamp_page(page)
    return max(1, min(TOTAL_JUZ, -(-p * TOTAL_JUZ // TOTAL_PAGES)))


def progress_percent(page: Any) -> float:
    return round(clamp_page(page) / TOTAL_PAGES * 100, 1)


def all_sections() -> List[Section]:
    return [find_section(start) for start in _STARTS]


def derive(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of a stored record with the display fields added.

    The stored page is left untouched; the derived fields are computed on the
    clamped page so a hand-edited data file cannot break rendering.
    """
    page = record.get("currentPage")
    section = find_section(page)
    return {
        **record,
        "juz": juz_for_page(page),
        "surah": section.name,
        "surahArabic": section.arabic,
        "sectionIndex": section.index,
        "sectionStart": section.start,
        "sectionEnd": section.end,
        "progress": progress_percent(page),
    }


def rank(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Derive and order records by progress, highest first.

    Ties keep store order. Each row gets a dense 1-based rank plus the
    leader / second / lagger flags the page uses for its badges. "Second" is
    the best progress strictly below the leader and is only awarded when it
    is above zero.
    """
    rows = sorted((derive(r) for r in records), key=lambda r: r["progress"], reverse=True)
    if not rows:
        return []

    values = [r["progress"] for r in rows]
    max_progress = values[0]
    min_progress = values[-1]
    below_max = [v for v in values if v < max_progress]
    second = below_max[0] if below_max and below_max[0] > 0 else None

    distinct = sorted(set(values), reverse=True)
    positions = {v: i + 1 for i, v in enumerate(distinct)}

    for row in rows:
        prog = row["progress"]
        row["rank"] = positions[prog]
        row["isLeader"] = prog == max_progress
        row["isSecond"] = second is not None and prog == second
        row["isLagger"] = prog == min_progress
    return rows
