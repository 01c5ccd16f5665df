"""
Configuration constants for LLM Answer Metrics.

Default word lists, domain lists and keyword tables used by the extractor.
None of these lists names a specific brand: brand matching is driven purely
by the configured brand display names. Every list here can be overridden or
extended through EngineConfig.
"""

# Words dropped from a display name before abbreviations are generated.
# Articles, prepositions, auxiliaries and corporate suffixes.
COMMON_NAME_WORDS: tuple[str, ...] = (
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "are", "was", "were", "be",
    "been", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "can", "must", "shall",
    "company", "co", "inc", "incorporated", "corp", "corporation", "ltd",
    "limited", "llc", "plc", "gmbh", "group", "holdings", "enterprises",
    "industries", "international", "global",
)  # fmt: skip

# Category words that are too generic to identify a brand on their own.
# A partial match or a domain variant built only from one of these never
# counts as brand evidence.
GENERIC_BRAND_WORDS: tuple[str, ...] = (
    "bank", "banks", "card", "cards", "credit", "debit", "rewards", "reward",
    "financial", "finance", "money", "capital", "express", "one", "pay",
    "cash", "loan", "loans", "insurance", "travel", "points", "premium",
    "platinum", "gold", "plus", "pro", "app", "apps", "online", "digital",
    "software", "cloud", "tech", "labs", "solutions", "services", "systems",
    "network", "media", "health", "care", "store", "shop", "home", "world",
    "first", "national", "american", "united", "general", "new", "best",
    "smart", "data", "hub", "team",
)  # fmt: skip

# Top-level domains combined with brand base forms to build domain variants.
GENERIC_TLDS: tuple[str, ...] = ("com", "net", "org", "io", "co", "ai", "app")

# Hosts of social / sharing platforms. Shorteners are listed explicitly.
SOCIAL_DOMAINS: tuple[str, ...] = (
    "facebook.com", "fb.com", "fb.me", "twitter.com", "x.com", "t.co",
    "instagram.com", "linkedin.com", "lnkd.in", "youtube.com", "youtu.be",
    "tiktok.com", "snapchat.com", "pinterest.com", "pin.it", "reddit.com",
    "redd.it", "whatsapp.com", "wa.me", "telegram.org", "t.me",
    "discord.com", "discord.gg", "signal.org", "viber.com", "line.me",
    "wechat.com", "twitch.tv", "vimeo.com", "dailymotion.com", "medium.com",
    "tumblr.com", "flickr.com", "imgur.com", "quora.com",
    "stackoverflow.com", "stackexchange.com", "threads.net", "mastodon.social",
    "clubhouse.com", "meetup.com", "nextdoor.com", "foursquare.com",
    "mewe.com", "truthsocial.com", "minds.com", "blogspot.com",
    "blogger.com", "wordpress.com", "substack.com", "bsky.app",
)  # fmt: skip

# Hosts that only shorten links to a social platform.
SOCIAL_SHORTENERS: frozenset[str] = frozenset(
    {"t.co", "fb.me", "youtu.be", "wa.me", "t.me", "discord.gg", "lnkd.in", "redd.it", "pin.it"}
)

# Earned-media pattern families, matched against the cleaned domain.
# Evaluated news, review, industry; the first family that matches wins.
NEWS_MEDIA_PATTERN = (
    r"(^|[.\-])(news|times|post|herald|tribune|gazette|journal|daily|"
    r"reuters|bloomberg|cnbc|cnn|bbc|forbes|fortune|wsj|nytimes|"
    r"guardian|economist|apnews|npr|axios|techcrunch|wired|verge)"
    r"|\.(news|media|press)$"
)
REVIEW_SITE_PATTERN = (
    r"review|compare|comparison|rating|ranking|versus|(^|[.\-])vs[.\-]|"
    r"(^|[.\-])(best|top)[a-z0-9\-]*\.|advisor|wallethub|nerdwallet|"
    r"trustpilot|g2|capterra|yelp|consumerreports"
)
INDUSTRY_PUBLICATION_PATTERN = (
    r"industry|business|insider|finance|tech|magazine|journal|insights|"
    r"research|report|analyst|institute|association|academy|"
    r"\.(org|edu|gov)$|\.(ac|gov)\.[a-z]{2}$"
)

EARNED_NEWS_CONFIDENCE = 0.85
EARNED_REVIEW_CONFIDENCE = 0.8
EARNED_INDUSTRY_CONFIDENCE = 0.75
EARNED_DEFAULT_CONFIDENCE = 0.7

# Sentiment vocabulary. Single words are matched on word boundaries,
# phrases as whole-phrase substrings.
POSITIVE_WORDS: tuple[str, ...] = (
    "excellent", "great", "best", "outstanding", "superior", "exceptional",
    "amazing", "wonderful", "fantastic", "impressive", "remarkable",
    "recommended", "recommend", "popular", "trusted", "reliable", "leading",
    "innovative", "top", "premier", "preferred", "favorite", "valuable",
    "generous", "competitive", "strong", "solid", "good", "perfect",
    "ideal", "seamless", "easy", "convenient", "flexible", "secure",
    "rewarding", "worthwhile", "standout", "praised", "love", "helpful",
    "efficient", "affordable", "robust", "benefit", "benefits",
)  # fmt: skip
NEGATIVE_WORDS: tuple[str, ...] = (
    "poor", "bad", "worst", "terrible", "awful", "horrible", "disappointing",
    "inferior", "unreliable", "problematic", "difficult", "complicated",
    "expensive", "overpriced", "limited", "lacking", "weak", "slow",
    "buggy", "confusing", "frustrating", "hidden", "restrictive", "risky",
    "complaint", "complaints", "issue", "issues", "problem", "problems",
    "drawback", "drawbacks", "downside", "downsides", "avoid", "negative",
    "criticized", "outdated", "insecure", "unhelpful", "fees", "penalty",
)  # fmt: skip
POSITIVE_PHRASES: tuple[str, ...] = (
    "highly recommended", "stands out", "top choice", "best in class",
    "great value", "excellent choice", "well regarded", "industry leader",
    "worth considering", "no annual fee", "easy to use",
)  # fmt: skip
NEGATIVE_PHRASES: tuple[str, ...] = (
    "not recommended", "falls short", "hard to use", "poor customer service",
    "high fees", "watch out", "steer clear", "not worth",
    "customer complaints", "lack of",
)  # fmt: skip
NEGATION_WORDS: tuple[str, ...] = (
    "not", "no", "never", "neither", "nor", "none", "without", "hardly",
    "barely", "isn't", "aren't", "wasn't", "weren't", "don't", "doesn't",
    "didn't", "won't", "wouldn't", "can't", "cannot", "couldn't",
    "shouldn't",
)  # fmt: skip
