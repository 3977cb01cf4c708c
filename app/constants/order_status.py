PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
REJECTED = "rejected"

ALLOWED_TRANSITIONS = {
    "pending": ["processing", "completed", "rejected"],
    "processing": ["completed", "rejected"],
    "completed": [],
    "rejected": []
}
