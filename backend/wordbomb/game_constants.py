from __future__ import annotations

from dataclasses import dataclass

from .config import settings
from .game_types import Difficulty, GameMode

MAX_PLAYERS = settings.max_players
TICK_INTERVAL_MS = settings.tick_interval_ms
POLL_INTERVAL_MS = settings.poll_interval_ms
RESULTS_COUNTDOWN_TICKS = settings.results_countdown_ticks
COMBO_RECENCY_WINDOW = settings.combo_recency_window

ROOM_CODE_LENGTH = 6
ROOM_CODE_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
SYSTEM_PLAYER_NAME = "System"
MAX_CHAT_MESSAGE_LENGTH = 500
MAX_PLAYER_NAME_LENGTH = 24
MIN_PLAYERS_TO_START = 2

SOLO_MIN_WORD_LENGTH = 3
MULTIPLAYER_MIN_WORD_LENGTH = 4
SOLO_LIVES = 3
DEFAULT_POINTS_PER_WORD = 50
LENGTH_BONUS_BASELINE = 4
LENGTH_BONUS_PER_LETTER = 5

DIFFICULTY_LEVELS: tuple[Difficulty, Difficulty, Difficulty] = ("easy", "medium", "hard")
GAME_MODES: tuple[GameMode, GameMode, GameMode, GameMode] = ("free_for_all", "team_2", "team_3", "team_4")
TIME_LIMIT_SECONDS: dict[Difficulty, float] = {
    "easy": 15.0,
    "medium": 10.0,
    "hard": 7.0,
}

TEAM_NAMES = ("Blue", "Red", "Green", "Yellow", "Purple", "Orange")


@dataclass(frozen=True)
class BotProfile:
    min_delay: float
    max_delay: float
    min_word_length: int
    max_word_length: int
    failure_rate: float


BOT_PROFILES: dict[Difficulty, BotProfile] = {
    "easy": BotProfile(min_delay=3.0, max_delay=5.0, min_word_length=4, max_word_length=6, failure_rate=0.10),
    "medium": BotProfile(min_delay=2.0, max_delay=3.0, min_word_length=5, max_word_length=8, failure_rate=0.05),
    "hard": BotProfile(min_delay=1.0, max_delay=2.0, min_word_length=7, max_word_length=12, failure_rate=0.02),
}
BOT_FALLBACK_MIN_WORD_LENGTH = 4

BOT_NAME_ADJECTIVES = (
    "Swift", "Lazy", "Clever", "Brave", "Quiet", "Wild", "Happy", "Angry",
    "Cold", "Warm", "Sleepy", "Jumpy", "Sneaky", "Mighty", "Tiny", "Giant",
    "Quick", "Slow", "Wise", "Silly", "Fierce", "Gentle", "Proud", "Shy",
    "Bold", "Calm", "Crazy", "Cool", "Dark", "Bright", "Lucky", "Dizzy",
    "Grumpy", "Jolly", "Nimble", "Rusty", "Shiny", "Smooth", "Spiky", "Fluffy",
)
BOT_NAME_ANIMALS = (
    "Dog", "Cat", "Fox", "Bear", "Lion", "Tiger", "Wolf", "Panda", "Rabbit", "Mouse",
    "Eagle", "Hawk", "Raven", "Owl", "Penguin", "Dolphin", "Shark", "Whale", "Seal", "Otter",
    "Deer", "Moose", "Elk", "Zebra", "Giraffe", "Elephant", "Rhino", "Hippo", "Koala", "Sloth",
    "Monkey", "Gorilla", "Cheetah", "Leopard", "Jaguar", "Lynx", "Cougar", "Badger", "Raccoon", "Squirrel",
)
BOT_NAME_MAX_ATTEMPTS = 100

LETTER_COMBOS: tuple[str, ...] = (
    "AB", "AC", "AD", "AG", "AI", "AL", "AM", "AN", "AP", "AR", "AS", "AT", "AY",
    "BA", "BE", "BI", "BO", "BR", "BU", "BY",
    "CA", "CE", "CH", "CI", "CK", "CL", "CO", "CR", "CT", "CU",
    "DA", "DE", "DI", "DO", "DR", "DU", "DY",
    "EA", "ED", "EE", "EL", "EM", "EN", "ER", "ES", "ET", "EW", "EX", "EY",
    "FA", "FE", "FI", "FL", "FO", "FR", "FU",
    "GA", "GE", "GH", "GI", "GL", "GO", "GR", "GU",
    "HA", "HE", "HI", "HO", "HU",
    "IC", "ID", "IE", "IF", "IG", "IL", "IM", "IN", "IO", "IR", "IS", "IT", "IV",
    "JA", "JE", "JO", "JU",
    "KE", "KI", "KN",
    "LA", "LE", "LI", "LL", "LO", "LU", "LY",
    "MA", "ME", "MI", "MO", "MP", "MU", "MY",
    "NA", "NE", "NG", "NI", "NO", "NT", "NU",
    "OA", "OB", "OC", "OD", "OF", "OG", "OI", "OK", "OL", "OM", "ON", "OO", "OP", "OR",
    "OS", "OT", "OU", "OV", "OW", "OX", "OY",
    "PA", "PE", "PH", "PI", "PL", "PO", "PR", "PU",
    "QU",
    "RA", "RE", "RG", "RI", "RK", "RM", "RN", "RO", "RP", "RR", "RS", "RT", "RU", "RY",
    "SA", "SC", "SE", "SH", "SI", "SK", "SL", "SM", "SN", "SO", "SP", "ST", "SU", "SW", "SY",
    "TA", "TE", "TH", "TI", "TO", "TR", "TT", "TU", "TW", "TY",
    "UB", "UC", "UD", "UE", "UG", "UI", "UL", "UM", "UN", "UP", "UR", "US", "UT",
    "VA", "VE", "VI", "VO",
    "WA", "WE", "WH", "WI", "WO", "WR",
    "YE", "YO", "YS",
    "ZE", "ZO",
)

# Country and nationality names. Matched as whole words, case-insensitively.
BANNED_WORDS: frozenset[str] = frozenset(
    {
        "afghanistan", "afghan", "albania", "albanian", "algeria", "algerian", "america", "american",
        "andorra", "angola", "angolan", "argentina", "argentine", "argentinian", "armenia", "armenian",
        "australia", "australian", "austria", "austrian", "azerbaijan", "bahamas", "bahrain",
        "bangladesh", "bangladeshi", "barbados", "belarus", "belgium", "belgian", "belize", "benin",
        "bhutan", "bolivia", "bolivian", "bosnia", "botswana", "brazil", "brazilian", "britain",
        "british", "brunei", "bulgaria", "bulgarian", "burundi", "cambodia", "cambodian", "cameroon",
        "canada", "canadian", "chad", "chile", "chilean", "china", "chinese", "colombia", "colombian",
        "comoros", "congo", "croatia", "croatian", "cuba", "cuban", "cyprus", "czech", "czechia",
        "denmark", "danish", "djibouti", "dominica", "ecuador", "egypt", "egyptian", "england",
        "english", "eritrea", "estonia", "estonian", "eswatini", "ethiopia", "ethiopian", "fiji",
        "finland", "finnish", "france", "french", "gabon", "gambia", "georgia", "georgian", "germany",
        "german", "ghana", "ghanaian", "greece", "greek", "grenada", "guatemala", "guinea", "guyana",
        "haiti", "haitian", "honduras", "hungary", "hungarian", "iceland", "icelandic", "india",
        "indian", "indonesia", "indonesian", "iran", "iranian", "iraq", "iraqi", "ireland", "irish",
        "israel", "israeli", "italy", "italian", "jamaica", "jamaican", "japan", "japanese",
        "jordan", "jordanian", "kazakhstan", "kenya", "kenyan", "kiribati", "korea", "korean",
        "kosovo", "kuwait", "kuwaiti", "kyrgyzstan", "laos", "latvia", "latvian", "lebanon",
        "lebanese", "lesotho", "liberia", "libya", "libyan", "liechtenstein", "lithuania",
        "lithuanian", "luxembourg", "madagascar", "malawi", "malaysia", "malaysian", "maldives",
        "mali", "malta", "maltese", "mauritania", "mauritius", "mexico", "mexican", "micronesia",
        "moldova", "monaco", "mongolia", "mongolian", "montenegro", "morocco", "moroccan",
        "mozambique", "myanmar", "namibia", "nauru", "nepal", "nepalese", "netherlands", "dutch",
        "nicaragua", "niger", "nigeria", "nigerian", "norway", "norwegian", "oman", "pakistan",
        "pakistani", "palau", "palestine", "palestinian", "panama", "paraguay", "peru", "peruvian",
        "philippines", "filipino", "poland", "polish", "portugal", "portuguese", "qatar", "romania",
        "romanian", "russia", "russian", "rwanda", "samoa", "scotland", "scottish", "senegal",
        "serbia", "serbian", "seychelles", "singapore", "slovakia", "slovak", "slovenia",
        "slovenian", "somalia", "somali", "spain", "spanish", "sudan", "sudanese", "suriname",
        "sweden", "swedish", "switzerland", "swiss", "syria", "syrian", "taiwan", "taiwanese",
        "tajikistan", "tanzania", "thailand", "thai", "togo", "tonga", "tunisia", "tunisian",
        "turkey", "turkish", "turkmenistan", "tuvalu", "uganda", "ugandan", "ukraine", "ukrainian",
        "uruguay", "uzbekistan", "vanuatu", "vatican", "venezuela", "venezuelan", "vietnam",
        "vietnamese", "wales", "welsh", "yemen", "yemeni", "zambia", "zambian", "zimbabwe",
    }
)
