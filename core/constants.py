# core/constants.py
JOB_STATUS_CHOICES = (
    ('draft', 'Draft'),                          # Saved by the client, not visible to workers
    ('posted', 'Posted'),                        # Open for applications
    ('assigned', 'Assigned'),                    # Client accepted an application
    ('in_progress', 'In Progress'),              # Worker accepted the assignment
    ('submitted', 'Submitted'),                  # Worker delivered the work
    ('awaiting_completion', 'Awaiting Completion'),  # Progress reached 100%, waiting on the client
    ('revision_requested', 'Revision Requested'),    # Client sent the delivery back
    ('completed', 'Completed'),                  # Payment confirmed
    ('cancelled', 'Cancelled'),
)

# Job statuses from which the client may request a revision or complete with a rating
JOB_DELIVERED_STATUSES = ('submitted', 'awaiting_completion')
JOB_TERMINAL_STATUSES = ('completed', 'cancelled')

JOB_TRANSITIONS = {
    'draft': ('posted', 'cancelled'),
    'posted': ('assigned', 'cancelled'),
    'assigned': ('in_progress', 'posted', 'cancelled'),
    'in_progress': ('submitted', 'awaiting_completion', 'cancelled'),
    'submitted': ('revision_requested', 'completed', 'cancelled'),
    'awaiting_completion': ('revision_requested', 'completed', 'cancelled'),
    'revision_requested': ('in_progress', 'cancelled'),
    'completed': (),
    'cancelled': (),
}

JOB_APPLICATION_STATUS_CHOICES = (
    ('pending', 'Pending'),      # Worker applied, awaiting client response
    ('accepted', 'Accepted'),    # Client accepted worker's application
    ('rejected', 'Rejected'),    # Client rejected worker's application
    ('withdrawn', 'Withdrawn'),  # Worker withdrew or declined the assignment
)

PAYMENT_METHOD_CHOICES = (
    ('manual_check', 'Manual Check'),
    ('admin_adjustment', 'Admin Adjustment'),
)

PAYMENT_TYPE_CHOICES = (
    ('job_payment', 'Job Payment'),
    ('adjustment', 'Adjustment'),
)

PAYMENT_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('processing', 'Processing'),
    ('completed', 'Completed'),
    ('failed', 'Failed'),
    ('cancelled', 'Cancelled'),
    ('refunded', 'Refunded'),
    ('partially_refunded', 'Partially Refunded'),
)

# Normal ledger flow; completed only leaves through a dispute resolution
PAYMENT_TRANSITIONS = {
    'pending': ('processing', 'completed', 'cancelled'),
    'processing': ('completed', 'failed'),
    'completed': (),
    'failed': (),
    'cancelled': (),
    'refunded': (),
    'partially_refunded': (),
}

PAYMENT_TERMINAL_STATUSES = ('failed', 'cancelled', 'refunded', 'partially_refunded')
# A job may carry at most one payment in these statuses
PAYMENT_ACTIVE_STATUSES = ('pending', 'processing', 'completed', 'partially_refunded')

DISPUTE_ACTION_CHOICES = (
    ('refund', 'Refund'),
    ('release', 'Release'),
    ('partial', 'Partial Refund'),
)

DISPUTE_ACTION_STATUS = {
    'refund': 'refunded',
    'release': 'completed',
    'partial': 'partially_refunded',
}

DISPUTE_STATUS_CHOICES = (
    ('open', 'Open'),
    ('investigating', 'Investigating'),
    ('resolved', 'Resolved'),
    ('closed', 'Closed'),
)

DISPUTE_TYPE_CHOICES = (
    ('payment', 'Payment Issue'),
    ('quality', 'Quality of Work'),
    ('communication', 'Communication'),
    ('deadline', 'Missed Deadline'),
    ('scope', 'Scope Change'),
    ('other', 'Other'),
)

DISPUTE_PRIORITY_CHOICES = (
    ('low', 'Low'),
    ('medium', 'Medium'),
    ('high', 'High'),
    ('urgent', 'Urgent'),
)

NOTIFICATION_TYPE_CHOICES = (
    ('job_application', 'Job Application'),
    ('job_assigned', 'Job Assigned'),
    ('job_cancelled', 'Job Cancelled'),
    ('job_completed', 'Job Completed'),
    ('revision_requested', 'Revision Requested'),
    ('payment_received', 'Payment Received'),
    ('payment_processed', 'Payment Processed'),
    ('dispute_raised', 'Dispute Raised'),
    ('dispute_resolved', 'Dispute Resolved'),
    ('general', 'General'),
)
