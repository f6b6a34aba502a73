"""Static vocabulary for student ID cards: collections, boilerplate words, labels."""

# Firestore collections
LOST_ITEMS = "lostItems"
FOUND_ITEMS = "foundItems"
STUDENTS = "students"

# Institutional / card boilerplate that must never be taken for a student's name.
# Checked as substrings of the cleaned (uppercase) candidate.
EXCLUDED_NAME_WORDS = [
    "DEDAN", "KIMATHI", "UNIVERSITY", "TECHNOLOGY", "STUDENT",
    "IDENTITY", "CARD", "FACULTY", "COURSE", "DEPARTMENT", "DEPT",
    "VALIDITY", "VALID", "THRU", "BACHELOR", "SCIENCE", "ACTUARIAL",
    "STATISTICS", "INFORMATION", "TECH", "BETTER", "LIFE", "THROUGH",
    "MONTHLY", "YEAR", "REGISTRATION", "NUMBER", "PHOTO", "NAME",
]

# Honorifics dropped before comparing names
HONORIFICS = ["mr", "ms", "mrs", "dr"]

# Name candidate limits
NAME_MIN_LENGTH = 6
NAME_MIN_WORDS = 2
NAME_MAX_WORDS = 4
NAME_WORD_MIN_LETTERS = 3
NAME_WORD_MAX_LETTERS = 15

# Confidence tiers, evaluated high to low (first threshold reached wins)
CONFIDENCE_TIERS = [
    (80, "Very High"),
    (60, "High"),
    (40, "Medium"),
    (20, "Low"),
]
CONFIDENCE_FLOOR = "Very Low"

# Shown to users instead of an empty extracted field
NOT_DETECTED = "Not detected"
