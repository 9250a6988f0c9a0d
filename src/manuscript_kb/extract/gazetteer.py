"""Gazetteer and noise-word lexicon.

Dictionary-based entity lookup and noise filtering shared by candidate
extraction and classification. Everything here is immutable module data
exposed through pure functions.
"""

import re
from dataclasses import dataclass

from ..models.entities import EntityType

# Words that commonly appear capitalized at sentence starts but are never
# real entity names.
NOISE_WORDS: frozenset[str] = frozenset([
    # Short function words
    "an", "am", "as", "at", "be", "by", "do", "go", "he", "if", "in",
    "is", "it", "me", "my", "no", "of", "on", "or", "so", "to", "up", "us", "we",
    # Common function words
    "the", "and", "but", "for", "not", "you", "all", "can", "had", "her",
    "was", "one", "our", "out", "get", "has", "him", "his",
    "how", "its", "may", "new", "now", "old", "see", "way", "who", "did",
    "got", "let", "say", "she", "too", "use", "when", "then", "than",
    "them", "they", "this", "that", "with", "have", "from", "been", "some",
    "what", "were", "will", "each", "make", "like", "long", "look", "many",
    "come", "could", "more", "would", "about", "after", "again", "being",
    "before", "between", "both", "came", "every", "first", "just", "know",
    "last", "little", "made", "much", "must", "never", "next", "only",
    "other", "over", "same", "should", "still", "such", "take", "their",
    "these", "think", "those", "time", "under", "very", "well",
    "where", "while", "years", "young", "another", "because", "nothing",
    "something", "through", "without", "right", "going", "back",
    "here", "there", "also", "most", "need", "even", "into", "good",
    "keep", "down", "want", "away", "part", "hand", "high",
    "room", "left", "head", "door", "side", "life", "eyes", "face",
    "thing", "enough", "any", "few", "several", "whose", "whom",
    "whether", "either", "neither", "nor", "yet", "yes",
    # Common verbs
    "turned", "looked", "moved", "walked", "stood", "stopped", "called",
    "watched", "started", "seemed", "continued", "reached", "pulled",
    "held", "opened", "closed", "tried", "wanted", "needed", "became",
    "began", "decided", "learned", "remembered", "realized", "understood",
    "heard", "felt", "found", "gave", "told", "took", "went", "done",
    "seen", "known", "sent", "caught", "kept", "meant", "lost", "paid",
    "said", "spoke", "replied", "answered", "explained", "added",
    "figured", "supposed", "noticed", "recognized", "considered",
    "grabbed", "dropped", "stepped", "leaned", "pressed", "pushed",
    "glanced", "stared", "nodded", "shook", "shrugged", "sighed",
    "whispered", "muttered", "shouted", "screamed", "laughed", "smiled",
    "pointed", "waved", "waited", "paused", "hesitated", "agreed",
    "followed", "returned", "arrived", "entered", "approached", "crossed",
    "drove", "running", "sitting", "standing", "waiting", "coming",
    "leaving", "talking", "working", "thinking", "looking", "getting",
    "making", "taking", "trying", "playing", "reading", "writing",
    "knowing", "seeing", "hearing", "feeling", "falling", "pulling",
    "everything", "everybody", "everyone", "anything", "anyone", "somewhere", "someone",
    # Common adjectives
    "better", "best", "worse", "worst", "less", "least", "greater",
    "local", "national", "federal", "official", "special",
    "major", "minor", "public", "private", "modern", "current", "recent",
    "different", "various", "certain", "possible", "likely", "clear",
    "open", "close", "full", "empty", "dark", "light", "hard", "soft",
    "large", "small", "fast", "slow", "early", "late", "sure", "real",
    "whole", "entire", "single", "double", "multiple", "simple", "complex",
    "main", "total", "direct", "social", "human", "foreign", "free",
    "true", "false", "wrong", "fine", "fair", "safe", "worth",
    "ready", "quick", "quiet", "alone", "alive", "dead", "strong", "weak",
    "clean", "dry", "wet", "hot", "cold", "cool", "warm", "bright", "deep",
    "thick", "thin", "heavy", "flat", "sharp", "rough", "smooth", "tight",
    "cheap", "rich", "poor", "fresh", "strange", "familiar", "ordinary",
    "obvious", "serious", "nervous", "angry", "glad", "sorry", "afraid",
    # Common nouns, titles and roles
    "people", "place", "world", "house", "point", "asked",
    "almost", "around", "really", "thought", "night", "work",
    "day", "man", "woman", "girl", "boy", "child", "children",
    "person", "group", "team", "family", "friend", "friends",
    "secretary", "president", "minister", "director", "doctor", "dr",
    "professor", "officer", "agent", "captain", "colonel", "lieutenant",
    "general", "commander", "chief", "deputy", "assistant", "senior", "junior",
    "sir", "madam", "lady", "lord", "king", "queen", "prince", "princess",
    "brother", "sister", "father", "mother", "daughter", "son", "uncle", "aunt",
    "husband", "wife", "partner", "boss", "guard", "soldier", "pilot",
    "driver", "nurse", "lawyer", "judge", "mayor", "governor", "senator",
    "marshal", "detective", "inspector", "analyst", "advisor", "spokesman",
    "protocol", "research", "science", "technology", "system", "program",
    "project", "report", "record", "document", "file", "data", "process",
    "service", "network", "security", "intelligence", "defense", "policy",
    "meeting", "mission", "operation", "session", "conference", "management",
    "recognition", "detention", "investigation", "headquarters", "facility",
    "mineral", "material", "evidence", "surveillance", "assessment",
    "morning", "afternoon", "evening", "midnight", "noon", "dawn", "dusk",
    "moment", "minute", "hour", "week", "month", "year", "decade", "century",
    "today", "tomorrow", "yesterday", "tonight", "weekend",
    "north", "south", "east", "west", "northern", "southern",
    "eastern", "western", "central", "upper", "lower",
    "street", "road", "avenue", "building", "floor", "office", "center",
    "field", "station", "airport", "hotel", "school", "church",
    "water", "fire", "air", "earth", "wind", "rain", "snow",
    "black", "white", "red", "blue", "green", "gray", "brown",
    "money", "power", "truth", "silence", "blood", "death", "peace",
    "war", "law", "order", "love", "fear", "hope", "pain",
    "half", "rest", "end", "top", "bottom", "front", "rear",
    "beginning", "middle", "inside", "outside", "behind", "above",
    "below", "across", "beside", "beyond", "toward", "towards",
    "city", "town", "country", "state", "island", "river", "lake",
    "mountain", "valley", "coast", "border", "region", "district",
    "phone", "screen", "camera", "window", "wall", "table",
    "chair", "bed", "car", "truck", "van", "bus", "train", "plane", "ship",
    "computer", "laptop", "signal", "message", "email", "voice", "sound",
    "question", "answer", "problem", "reason", "idea", "plan", "story",
    "news", "press", "media", "paper", "letter", "note", "card", "list",
    "case", "test", "source", "target", "subject", "matter", "issue",
    "chance", "risk", "threat", "attack", "damage", "control", "access",
    "level", "rate", "cost", "price", "deal", "trade", "market", "business",
    "company", "industry", "government", "military", "police", "army", "navy",
    "walk", "talk", "run", "call", "move", "turn", "step", "stop", "start",
    "pass", "fall", "rise", "drop", "break", "cut", "hit", "set", "put",
    # Numbers and ordinals
    "zero", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten",
    "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen", "seventeen",
    "eighteen", "nineteen", "twenty", "thirty", "forty", "fifty", "sixty", "seventy",
    "eighty", "ninety", "hundred", "thousand", "million", "billion", "dozen", "couple",
    "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth",
    # Misc
    "emergency", "library", "cabinet", "days", "christmas", "american",
    "yeah", "welcome", "hello", "hey", "okay", "please", "thanks",
    "conditions", "terms", "critical", "plant", "unit", "units", "mom", "dad",
    "sen", "rep", "hon", "dept", "corp", "assoc",
    "which", "kill", "phase", "congress",
    # Nationalities and demonyms
    "english", "chinese", "french", "russian", "german", "japanese", "korean",
    "british", "european", "african", "asian", "arab", "indian", "canadian",
    "mexican", "spanish", "italian", "brazilian", "iranian", "israeli",
    "americans", "russians", "germans",
    # Narrative boilerplate
    "chapter", "book", "section", "prologue", "epilogue",
    "however", "although", "finally", "suddenly", "perhaps",
    "certainly", "fortunately", "unfortunately", "apparently", "obviously",
    "meanwhile", "acknowledged", "alright",
    # Days and months ("may" is covered above)
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "january", "february", "march", "april", "june", "july", "august",
    "september", "october", "november", "december",
    # Sentence starters
    "once", "since", "until", "during",
    "accept", "already", "agricultural", "agriculture", "industrial",
    "presidential", "international", "environmental", "technological",
    "commercial", "professional", "operational", "residential",
    "medical", "political", "financial", "economic", "strategic",
    "tactical", "technical", "structural", "cultural", "physical",
])


def _weighted(names: list[str], confidence: int) -> dict[str, int]:
    return {name: confidence for name in names}


# Known locations: name -> confidence (0-100)
LOCATIONS: dict[str, int] = {
    # Major US cities
    **_weighted([
        "Atlanta", "Austin", "Baltimore", "Boston", "Charlotte", "Chicago",
        "Cincinnati", "Cleveland", "Columbus", "Dallas", "Denver", "Detroit",
        "Houston", "Indianapolis", "Jacksonville", "Louisville",
        "Memphis", "Miami", "Milwaukee", "Minneapolis", "Nashville",
        "Newark", "Norfolk", "Oakland", "Orlando", "Philadelphia", "Phoenix",
        "Pittsburgh", "Portland", "Sacramento", "Seattle", "Tampa",
        "Tucson", "Washington", "Honolulu", "Anchorage", "Reno",
        "Albuquerque", "Omaha", "Buffalo", "Rochester", "Richmond",
        "Savannah", "Charleston", "Lexington", "Boise", "Madison",
        "Fresno", "Bakersfield", "Tulsa", "Wichita", "Arlington",
        "Aurora", "Spokane", "Tacoma", "Durham", "Knoxville",
        "Chattanooga", "Dayton", "Akron", "Providence", "Hartford",
        "Springfield", "Yonkers", "Syracuse", "Worcester", "Flint",
        "Lansing", "Saginaw", "Midland", "Kalamazoo", "Pontiac",
        "Dearborn", "Langley", "Stanford",
    ], 90),
    # Multi-word US cities
    **_weighted([
        "Grand Rapids", "Fort Meade", "New York", "Los Angeles", "San Francisco",
        "San Diego", "Las Vegas", "San Antonio", "New Orleans", "Salt Lake",
        "Fort Worth", "El Paso", "St. Louis", "Ann Arbor", "Baton Rouge",
        "Kansas City", "Oklahoma City", "Virginia Beach", "Long Beach",
        "Colorado Springs", "Cape Coral", "Fort Lauderdale", "Fort Collins",
        "Little Rock", "Des Moines", "Palm Springs", "Corpus Christi",
        "West Palm Beach", "Santa Fe", "Palo Alto", "Auburn Hills",
    ], 95),
    # World cities
    **_weighted([
        "Shanghai", "Beijing", "Tokyo", "Seoul", "Mumbai", "Delhi", "Bangkok",
        "Singapore", "Dubai", "Istanbul", "Moscow", "London", "Paris", "Berlin",
        "Rome", "Madrid", "Amsterdam", "Vienna", "Prague", "Warsaw", "Athens",
        "Cairo", "Lagos", "Nairobi", "Johannesburg", "Sydney", "Melbourne",
        "Toronto", "Montreal", "Vancouver", "Taipei", "Kabul", "Baghdad",
        "Damascus", "Beirut", "Riyadh", "Pyongyang", "Havana", "Lima",
        "Bogota", "Caracas", "Santiago", "Helsinki", "Oslo", "Stockholm",
        "Copenhagen", "Brussels", "Lisbon", "Dublin", "Edinburgh",
        "Zurich", "Geneva", "Munich", "Hamburg", "Frankfurt", "Milan",
        "Barcelona", "Osaka", "Kyoto", "Manila", "Jakarta",
    ], 90),
    # Multi-word world cities
    **_weighted([
        "Hong Kong", "Tel Aviv", "Kuala Lumpur", "Ho Chi Minh",
        "New Delhi", "Addis Ababa", "Buenos Aires", "Rio de Janeiro",
        "Sao Paulo", "Mexico City",
    ], 95),
    # Countries
    **_weighted([
        "China", "Japan", "Korea", "India", "Russia", "Germany", "France",
        "England", "Britain", "Italy", "Spain", "Brazil", "Mexico", "Canada",
        "Australia", "Egypt", "Israel", "Iran", "Iraq", "Afghanistan",
        "Pakistan", "Vietnam", "Thailand", "Indonesia", "Philippines",
        "Taiwan", "Ukraine", "Poland", "Turkey", "Sweden", "Norway",
        "Finland", "Denmark", "Switzerland", "Austria", "Greece", "Portugal",
        "Colombia", "Argentina", "Chile", "Peru", "Venezuela", "Cuba",
        "Nigeria", "Kenya", "Ethiopia", "Somalia", "Libya", "Syria",
        "Lebanon", "Jordan", "Yemen", "Oman", "Qatar", "Bahrain", "Kuwait",
    ], 85),
    # US states ("Washington" keeps its city weight)
    **_weighted([
        "California", "Texas", "Florida", "Virginia", "Georgia", "Michigan",
        "Ohio", "Pennsylvania", "Illinois", "Minnesota", "Wisconsin",
        "Colorado", "Arizona", "Oregon", "Montana", "Alaska", "Hawaii",
        "Nevada", "Utah", "Iowa", "Alabama", "Mississippi", "Tennessee",
        "Kentucky", "Carolina", "Connecticut", "Maryland", "Massachusetts",
        "Idaho", "Wyoming", "Nebraska", "Oklahoma", "Arkansas", "Missouri",
        "Indiana", "Louisiana", "Maine", "Vermont", "Delaware",
        "New Hampshire",
    ], 80),
    # Regions and continents
    **_weighted([
        "America", "Europe", "Asia", "Africa", "Pacific", "Atlantic",
        "Arctic", "Antarctic", "Siberia", "Sahara", "Himalayas",
        "Appalachia", "Midwest", "Scandinavia", "Balkans", "Caucasus",
        "Caribbean", "Mediterranean",
    ], 75),
    # Landmarks that turn up in fiction
    **_weighted([
        "Pentagon", "Kremlin", "Vatican", "Buckingham",
        "Alcatraz", "Guantanamo", "Chernobyl", "Fukushima",
    ], 85),
    "Camp David": 90,
}

# Known organizations: name -> confidence (0-100)
ORGANIZATIONS: dict[str, int] = {
    # US government agencies
    **_weighted([
        "CIA", "FBI", "NSA", "NSC", "DHS", "DOJ", "DOD", "DOE",
        "EPA", "FAA", "FCC", "FDA", "FEMA", "IRS", "SEC", "TSA",
        "ATF", "DEA", "ICE", "CBP", "USDA", "USPS", "NASA", "DARPA",
        "NIST", "NOAA", "NIH", "CDC", "OSHA", "NRC",
    ], 95),
    # Military
    **_weighted(["NATO", "SOCOM", "JSOC", "CENTCOM", "EUCOM", "PACOM", "SEAL", "SWAT"], 90),
    # International
    **_weighted(["IAEA", "OPEC", "ASEAN", "BRICS", "INTERPOL", "UNESCO", "UNICEF", "WHO"], 90),
    # Intelligence agencies
    **_weighted(["MSS", "FSB", "GRU", "GCHQ", "BND", "DGSE", "ASIS", "CSIS", "RAW"], 90),
    # Technical acronyms used as organizations
    **_weighted(["SCADA", "EMP", "CERT"], 70),
    # Named bodies ("Pentagon" stays a location, listed above)
    **_weighted(["Congress", "Senate", "Parliament", "Politburo", "Interpol"], 80),
}

# Last word of a multi-word phrase -> location
LOCATION_SUFFIXES: frozenset[str] = frozenset([
    "plaza", "room", "building", "tower", "bridge", "park", "center", "centre",
    "hall", "base", "compound", "embassy", "station", "hospital", "airport",
    "harbor", "harbour", "port", "dam", "lake", "river", "mountain", "valley",
    "bay", "island", "islands", "peninsula", "falls", "springs", "creek", "ridge",
    "heights", "hills", "woods", "forest", "beach", "coast", "cape", "county",
    "canyon", "mesa", "pass", "crossing", "junction", "point", "terrace",
])

# Last word of a multi-word phrase -> organization
ORG_SUFFIXES: frozenset[str] = frozenset([
    "festival", "foundation", "corporation", "association", "institute",
    "university", "college", "academy", "agency", "bureau", "department",
    "ministry", "group", "corp", "inc", "ltd", "council", "commission",
    "authority", "alliance", "coalition", "consortium", "syndicate",
    "network", "initiative", "program", "service", "services",
    "committee", "senate", "board", "division",
    "party", "league", "union", "federation", "society", "club",
])

# Phrases ending with these are too granular for entity extraction
STREET_SUFFIXES: frozenset[str] = frozenset([
    "street", "road", "avenue", "boulevard", "drive", "lane", "court",
    "highway", "way", "route", "freeway", "turnpike", "parkway", "alley",
])

# Emphasized dialogue, not real organizations
CAPS_NOT_ACRONYMS: frozenset[str] = frozenset([
    "HELLO", "READ", "STOP", "HELP", "MOVE", "WAIT",
    "COME", "LOOK", "HERE", "THERE", "WHAT", "WHERE", "WHEN", "FIRE",
    "DOWN", "BACK", "OPEN", "SHUT", "HOLD", "STAY", "KILL", "DEAD",
    "LOVE", "HOME", "GONE", "DAMN", "JUST", "YEAH", "OKAY", "CALL",
    "PLEASE", "SORRY", "NEVER", "LEAVE", "TAKE", "GIVE", "MAKE",
    "TELL", "KNOW", "THINK", "WANT", "NEED", "FEEL",
])

ACRONYM_SKIP: frozenset[str] = frozenset([
    "OK", "AM", "PM", "TV", "US", "UK", "EU", "UN", "ID", "IT",
    "OR", "AN", "AT", "AS", "IF", "IS", "IN", "ON", "SO", "TO",
    "UP", "NO", "OF", "IV", "IP", "AI", "AD", "DC", "AC", "DO",
    "GO", "ER", "DR", "MR", "MS", "VS", "RE", "EM", "AG",
])

# Titles that precede character names ("Agent Ramsey", "Dr. Wu")
CHARACTER_TITLES: tuple[str, ...] = (
    "mr", "mrs", "ms", "dr", "professor", "colonel", "general", "agent",
    "captain", "lieutenant", "sergeant", "officer", "detective", "inspector",
    "president", "director", "commander", "major", "admiral", "senator",
    "governor", "ambassador", "minister", "secretary", "chief",
)

# Verbs that typically follow or precede character names
CHARACTER_SIGNALS: tuple[str, ...] = (
    "said", "asked", "replied", "whispered", "shouted", "yelled",
    "nodded", "shook", "looked", "walked", "ran", "turned", "smiled",
    "frowned", "laughed", "sighed", "thought", "felt", "knew", "wanted",
    "told", "watched", "stood", "sat", "leaned", "paused", "continued",
    "shrugged", "muttered", "snapped", "glanced", "stared", "grabbed",
)

LOCATION_PREPOSITIONS: tuple[str, ...] = (
    "in", "to", "from", "at", "near", "outside", "across", "toward",
    "towards", "through", "around", "beyond",
)

# Nouns that follow an organization name ("the Bureau", "Zenith agency")
ORG_CONTEXT_WORDS: tuple[str, ...] = (
    "agency", "bureau", "department", "ministry", "institute",
    "corporation", "company", "force", "intelligence", "committee",
)

_ACRONYM_RE = re.compile(r"^[A-Z]{2,6}$")


@dataclass(frozen=True)
class GazetteerHit:
    """A gazetteer classification for a known name."""

    type: EntityType
    confidence: int


def is_noise(word: str) -> bool:
    """Check if a word is noise (a common word, never an entity name)."""
    return word.lower() in NOISE_WORDS


def is_acronym(text: str) -> bool:
    """Check if text is acronym-shaped (2-6 uppercase letters)."""
    return bool(_ACRONYM_RE.match(text))


def is_caps_noise(name: str) -> bool:
    """Check if an all-caps word is emphasized text rather than an acronym."""
    if name in CAPS_NOT_ACRONYMS:
        return True
    # 4+ letter all-caps words that are common English words
    return len(name) >= 4 and name.isalpha() and name.isupper() and name.lower() in NOISE_WORDS


def is_acronym_skip(acronym: str) -> bool:
    """Check if an acronym is a common abbreviation that isn't an organization."""
    return acronym in ACRONYM_SKIP


def is_street_address(name: str) -> bool:
    """Check if a multi-word phrase is a street address (too granular)."""
    words = name.split()
    if len(words) < 2:
        return False
    return words[-1].lower() in STREET_SUFFIXES


def suffix_type(name: str) -> EntityType | None:
    """Classify a multi-word name by its last word, if it is a known keyword."""
    words = name.split()
    if len(words) < 2:
        return None
    last_word = words[-1].lower()
    if last_word in LOCATION_SUFFIXES:
        return EntityType.LOCATION
    if last_word in ORG_SUFFIXES:
        return EntityType.ORGANIZATION
    return None


def lookup(name: str) -> GazetteerHit | None:
    """Look up a name in the gazetteer.

    Exact matches against the location and organization tables win; multi-word
    names otherwise fall back to their last-word keyword at confidence 80.

    Returns:
        GazetteerHit with type and confidence, or None if unknown
    """
    if name in LOCATIONS:
        return GazetteerHit(EntityType.LOCATION, LOCATIONS[name])
    if name in ORGANIZATIONS:
        return GazetteerHit(EntityType.ORGANIZATION, ORGANIZATIONS[name])

    keyword_type = suffix_type(name)
    if keyword_type is not None:
        return GazetteerHit(keyword_type, 80)

    return None
