from __future__ import annotations

PERIOD_QUARTERLY = "quarterly"
PERIOD_YEARLY = "yearly"
PERIOD_TYPES = (PERIOD_QUARTERLY, PERIOD_YEARLY)

RATER_EMPLOYEE = "employee"
RATER_MANAGER = "manager"
RATER_TYPES = (RATER_EMPLOYEE, RATER_MANAGER)

METHOD_NORMAL = "normal"
METHOD_GOAL_WEIGHT = "goal_weight"
METHOD_ACTUAL_VALUE = "actual_value"
METHOD_NONE = "none"
METHOD_ERROR = "error"

METHOD_LABELS = {
    METHOD_ACTUAL_VALUE: "Actual vs Target",
    METHOD_GOAL_WEIGHT: "Goal Weight",
    METHOD_NORMAL: "Normal Calculation",
}

# KPI statuses
KPI_PENDING = "pending"
KPI_ACKNOWLEDGED = "acknowledged"
KPI_STATUSES = (KPI_PENDING, KPI_ACKNOWLEDGED)

# Review statuses
REVIEW_PENDING = "pending"
REVIEW_EMPLOYEE_SUBMITTED = "employee_submitted"
REVIEW_MANAGER_INITIATED = "manager_initiated"
REVIEW_MANAGER_SUBMITTED = "manager_submitted"
REVIEW_AWAITING_CONFIRMATION = "awaiting_employee_confirmation"
REVIEW_COMPLETED = "completed"
REVIEW_REJECTED = "rejected"
REVIEW_STATUSES = (
    REVIEW_PENDING,
    REVIEW_EMPLOYEE_SUBMITTED,
    REVIEW_MANAGER_INITIATED,
    REVIEW_MANAGER_SUBMITTED,
    REVIEW_AWAITING_CONFIRMATION,
    REVIEW_COMPLETED,
    REVIEW_REJECTED,
)

# Audiences for stage wording
AUDIENCE_EMPLOYEE = "employee"
AUDIENCE_MANAGER = "manager"
AUDIENCE_HR = "hr"
AUDIENCES = (AUDIENCE_EMPLOYEE, AUDIENCE_MANAGER, AUDIENCE_HR)

# Statistics buckets
BUCKET_PENDING = "pending"
BUCKET_ACKNOWLEDGED_REVIEW_PENDING = "acknowledged_review_pending"
BUCKET_REVIEW_PENDING = "review_pending"
BUCKET_SELF_RATING_SUBMITTED = "self_rating_submitted"
BUCKET_AWAITING_CONFIRMATION = "awaiting_employee_confirmation"
BUCKET_REVIEW_COMPLETED = "review_completed"
BUCKET_REVIEW_REJECTED = "review_rejected"
BUCKET_NO_KPI = "no_kpi"

BUCKETS = (
    BUCKET_PENDING,
    BUCKET_ACKNOWLEDGED_REVIEW_PENDING,
    BUCKET_REVIEW_PENDING,
    BUCKET_SELF_RATING_SUBMITTED,
    BUCKET_AWAITING_CONFIRMATION,
    BUCKET_REVIEW_COMPLETED,
    BUCKET_REVIEW_REJECTED,
)

BUCKET_LABELS = {
    BUCKET_PENDING: "KPI Setting - Awaiting Acknowledgement",
    BUCKET_ACKNOWLEDGED_REVIEW_PENDING: "KPI Acknowledged - Review Pending",
    BUCKET_REVIEW_PENDING: "KPI Review - Self-Rating Required",
    BUCKET_SELF_RATING_SUBMITTED: "Self-Rating Submitted - Awaiting Manager Review",
    BUCKET_AWAITING_CONFIRMATION: "Awaiting Employee Confirmation",
    BUCKET_REVIEW_COMPLETED: "KPI Review Completed",
    BUCKET_REVIEW_REJECTED: "Review Rejected by Employee",
    BUCKET_NO_KPI: "No KPI Assigned",
}

# Stage labels
STAGE_AWAITING_ACKNOWLEDGEMENT = "Awaiting Acknowledgement"
STAGE_MANAGER_WILL_INITIATE = "Manager Will Initiate Review"
STAGE_REVIEW_PENDING_ACTION = "Review Pending – Action Required"
STAGE_SELF_RATING_REQUIRED = "Self-Rating Required"
STAGE_SELF_RATING_SUBMITTED = "Self-Rating Submitted – Awaiting Manager Review"
STAGE_MANAGER_REVIEW_IN_PROGRESS = "Manager Review In Progress"
STAGE_AWAITING_CONFIRMATION = "Awaiting Your Confirmation"
STAGE_MANAGER_RATING_SUBMITTED = "Manager Rating Submitted"
STAGE_REVIEW_COMPLETED = "Review Completed"
STAGE_REVIEW_REJECTED = "Review Rejected"
STAGE_IN_PROGRESS = "In Progress"

STAGE_PROGRESS = {
    STAGE_AWAITING_ACKNOWLEDGEMENT: 25,
    STAGE_MANAGER_WILL_INITIATE: 45,
    STAGE_REVIEW_PENDING_ACTION: 45,
    STAGE_SELF_RATING_REQUIRED: 60,
    STAGE_SELF_RATING_SUBMITTED: 75,
    STAGE_MANAGER_REVIEW_IN_PROGRESS: 75,
    STAGE_AWAITING_CONFIRMATION: 90,
    STAGE_MANAGER_RATING_SUBMITTED: 90,
    STAGE_REVIEW_COMPLETED: 100,
    STAGE_REVIEW_REJECTED: 50,
}
DEFAULT_PROGRESS = 45

# Actions
ACTION_ACKNOWLEDGE = "acknowledge"
ACTION_SUBMIT_SELF_RATING = "submit_self_rating"
ACTION_SUBMIT_MANAGER_RATING = "submit_manager_rating"
ACTION_INITIATE_REVIEW = "initiate_review"
ACTION_CONFIRM = "confirm"
ACTION_REJECT = "reject"
ACTION_RESUBMIT = "resubmit"

ACTOR_EMPLOYEE = "employee"
ACTOR_MANAGER = "manager"
ACTORS = (ACTOR_EMPLOYEE, ACTOR_MANAGER)
