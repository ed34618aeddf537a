"""GraphQL endpoint constants and baked-in query IDs."""

TWITTER_API_BASE = "https://x.com/i/api/graphql"

# REST endpoints that describe the account behind the session cookies
ACCOUNT_SETTINGS_URLS = [
    "https://x.com/i/api/account/settings.json",
    "https://api.twitter.com/1.1/account/settings.json",
    "https://x.com/i/api/account/verify_credentials.json?skip_status=true&include_entities=false",
    "https://api.twitter.com/1.1/account/verify_credentials.json?skip_status=true&include_entities=false",
]

SETTINGS_PAGES = ["https://x.com/settings/account", "https://twitter.com/settings/account"]

SETTINGS_SCREEN_NAME_PATTERN = r'"screen_name":"([^"]+)"'
SETTINGS_USER_ID_PATTERN = r'"user_id"\s*:\s*"(\d+)"'
SETTINGS_NAME_PATTERN = r'"name":"([^"\\]*(?:\\.[^"\\]*)*)"'

DEFAULT_TTL_SECONDS = 24 * 60 * 60  # 24 hours

# Query IDs rotate frequently. These defaults keep the client usable when no
# cached snapshot exists and bundle discovery fails.
FALLBACK_QUERY_IDS: dict[str, str] = {
    "TweetDetail": "97JF30KziU00483E_8elBA",
    "SearchTimeline": "M1jEez78PEfVfbQLvlWMvQ",
    "UserArticlesTweets": "8zBy9h4L90aDL02RsBcCFg",
    "Bookmarks": "RV1g3b8n_SGOHwkqKYSCFw",
    "Likes": "JR2gceKucIKcVNB_9JkhsA",
    "BookmarkFolderTimeline": "KJIQpsvxrTfRIlbaRIySHQ",
    "Following": "BEkNpEt5pNETESoqMsTEGA",
    "Followers": "kuFUYP9eV1FPoEy4N-pi7w",
    "HomeTimeline": "edseUwk9sP5Phz__9TIRnA",
    "HomeLatestTimeline": "iOEZpOdfekFsxSlPQCQtPg",
    "UserTweets": "Wms1GvIiHXAPBaCr9KblaA",
    "UserByScreenName": "sLVLhk0bGj3MVFEKTdax1w",
}

# IDs observed in other web client builds, tried between the refreshed
# value and the baked-in default.
ALTERNATE_QUERY_IDS: dict[str, list[str]] = {
    "TweetDetail": ["aFvUsJm2c-oDkJV75blV6g"],
    "SearchTimeline": ["5h0kNbk3ii97rmfY6CdgAA", "Tp1sewRU1AsZpBWhqCZicQ"],
    "Bookmarks": ["tmd4ifV8RHltzn8ymGg1aw"],
    "UserByScreenName": ["xc8f1g7BYqr6VTzTbvNlGw", "qW5u-DAuXpMEG0zA1F7UGQ"],
}

TARGET_QUERY_ID_OPERATIONS: list[str] = list(FALLBACK_QUERY_IDS.keys())

DISCOVERY_PAGES = [
    "https://x.com/?lang=en",
    "https://x.com/explore",
    "https://x.com/notifications",
    "https://x.com/settings/profile",
]

BUNDLE_URL_PATTERN = (
    r"https://abs\.twimg\.com/responsive-web/client-web(?:-legacy)?/[A-Za-z0-9.-]+\.js"
)

QUERY_ID_PATTERN = r"^[a-zA-Z0-9_-]+$"

DISCOVERY_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}
