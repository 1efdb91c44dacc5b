"""
Server-side strings for activity feeds, keyed by the user's language.
Falls back to English when a key or language is missing.
"""

EN_STRINGS = {
    "dashboard.activity.registeredTournament": "Registered for Tournament",
    "dashboard.activity.attendedTournament": "Attended Tournament",
    "dashboard.activity.rewardUnlocked": "Reward Unlocked",
    "loyalty.rewards.scarf": "Falcons Scarf",
    "loyalty.rewards.vipTicket": "VIP Ticket",
    "loyalty.rewards.jersey": "Falcons Jersey",
}

AR_STRINGS = {
    "dashboard.activity.registeredTournament": "التسجيل في البطولة",
    "dashboard.activity.attendedTournament": "حضور البطولة",
    "dashboard.activity.rewardUnlocked": "تم فتح مكافأة",
    "loyalty.rewards.scarf": "وشاح الصقور",
    "loyalty.rewards.vipTicket": "تذكرة كبار الشخصيات",
    "loyalty.rewards.jersey": "قميص الصقور",
}

_STRINGS = {"en": EN_STRINGS, "ar": AR_STRINGS}

RTL_LANGUAGES = frozenset({"ar"})


def t(key: str, lang: str = "en", **kwargs) -> str:
    """Get translated string. Falls back to EN if key missing."""
    strings = _STRINGS.get(lang, _STRINGS["en"])
    text = strings.get(key, _STRINGS["en"].get(key, key))
    return text.format(**kwargs) if kwargs else text


def is_rtl(lang: str) -> bool:
    return lang in RTL_LANGUAGES
