"""Global constants for the asmaktab application."""

# Collection names
USERS_COLLECTION = "users"
REFERRAL_CODES_COLLECTION = "referral_codes"
FAMILY_GROUPS_COLLECTION = "family_groups"
FAMILY_MEMBERS_COLLECTION = "family_members"
FAMILY_REQUESTS_COLLECTION = "family_join_requests"
PURCHASES_COLLECTION = "purchases"
PAYMENTS_COLLECTION = "paymentHistory"

# User roles
ROLE_USER = "user"
ROLE_TUTOR = "tutor"
ROLE_ADMIN = "admin"

# Family group states
GROUP_STATUS_NONE = "none"
GROUP_STATUS_PENDING = "pending"
GROUP_STATUS_APPROVED = "approved"
REQUEST_STATUS_PENDING = "pending"
REQUEST_STATUS_REJECTED = "rejected"
MEMBER_ROLE_OWNER = "owner"
MEMBER_ROLE_MEMBER = "member"

# Code formats
GROUP_CODE_PREFIX = "FAM-"
GROUP_CODE_LENGTH = 6
REFERRAL_CODE_LETTERS = 5
REFERRAL_CODE_FILLER = "X"
REFERRAL_CODE_MIN_NUMBER = 1000
REFERRAL_CODE_MAX_NUMBER = 9999
DEFAULT_CODE_MAX_ATTEMPTS = 10

# Discounts are percentages
MAX_DISCOUNT = 100

# Review lists on a purchase record
STUDENT_REVIEW = "studentReview"
TUTOR_REVIEW = "tutorReview"
REVIEW_KINDS = (STUDENT_REVIEW, TUTOR_REVIEW)

# Payment states
PAYMENT_STATUS_SUBMITTED = "submitted"
