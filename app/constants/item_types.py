SINHALA_NOTE = "sinhalaNote"
SINHALA_ASSIGNMENT = "sinhalaAssignment"
ENGLISH_NOTE = "englishNote"
ENGLISH_ASSIGNMENT = "englishAssignment"

# master file name per item type, must match the upload path exactly
ITEM_TYPE_FILE_NAMES = {
    SINHALA_NOTE: "sinhala-note.pdf",
    SINHALA_ASSIGNMENT: "sinhala-assignment.pdf",
    ENGLISH_NOTE: "english-note.pdf",
    ENGLISH_ASSIGNMENT: "english-assignment.pdf",
}

ITEM_TYPES = tuple(ITEM_TYPE_FILE_NAMES)

# item type -> (Unit price column, medium label, kind label)
ITEM_TYPE_DETAILS = {
    SINHALA_NOTE: ("price_sinhala_note", "Sinhala", "Note"),
    SINHALA_ASSIGNMENT: ("price_sinhala_assignment", "Sinhala", "Assignment"),
    ENGLISH_NOTE: ("price_english_note", "English", "Note"),
    ENGLISH_ASSIGNMENT: ("price_english_assignment", "English", "Assignment"),
}


def file_name_for(item_type: str):
    return ITEM_TYPE_FILE_NAMES.get(item_type)
