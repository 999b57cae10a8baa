API_GROUP = "crwebapp.my.domain"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

KIND = "WebappCR"
PLURAL = "webappcrs"

# Label linking CronJobs and their Jobs back to the owning WebappCR
LABEL_OWNER_CRONJOB = "owner-cronjob"

# Execution status values
STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"

# Job condition types
JOB_COMPLETE = "Complete"
JOB_FAILED = "Failed"

FIELD_MANAGER = "webapp-operator"
