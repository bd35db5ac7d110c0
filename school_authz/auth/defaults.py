"""
Built-in module and role tables, the versioned seed of the taxonomy.

Each module receives the CRUD set (view, create, edit, update, delete,
manage) plus the module-specific actions listed here. Adding a module or an
action is a change to this table, never a side effect of which controller
files happen to exist.

Role grants use the string grammar accepted by `parse_grant`:

    "student.promote"   exact permission
    "student.*"         every permission of the student module
    "*"                 everything
"""

TAXONOMY_VERSION = "2024.1"

GLOBAL_ROLE = "SuperAdmin"

# ── Modules ──────────────────────────────────────────────────────────────────

MODULES: list[dict] = [
    # Core system modules
    {"name": "dashboard", "description": "Dashboard Management",
     "actions": ["access", "view_stats", "export_data"]},
    {"name": "auth", "description": "Authentication & Authorization",
     "actions": ["login", "logout", "register", "reset_password"]},
    {"name": "user", "description": "User Management",
     "actions": ["activate", "deactivate", "assign_role", "reset_password", "change_status",
                 "resend_invitation", "impersonate"]},
    {"name": "role", "description": "Role & Permission Management", "actions": []},
    {"name": "school", "description": "School Management",
     "actions": ["configure", "manage_settings", "view_stats", "activate", "deactivate"]},
    {"name": "settings", "description": "System Settings", "actions": []},
    {"name": "report", "description": "Reports & Analytics",
     "actions": ["academic", "financial", "attendance", "performance", "export", "schedule"]},
    {"name": "superadmin", "description": "Platform Administration",
     "actions": ["system_access", "global_manage", "tenant_manage", "billing_access"]},

    # Academic modules
    {"name": "student", "description": "Student Management",
     "actions": ["promote", "transfer", "graduate", "assign_class", "view_grades", "manage_attendance"]},
    {"name": "teacher", "description": "Teacher Management",
     "actions": ["assign_classes", "manage_grades", "view_performance", "assign_subjects"]},
    {"name": "class", "description": "Class Management",
     "actions": ["assign_students", "assign_teachers", "schedule_manage"]},
    {"name": "subject", "description": "Subject Management",
     "actions": ["assign_teachers", "manage_curriculum", "assign_classes"]},
    {"name": "attendance", "description": "Attendance Management",
     "actions": ["mark", "bulk_mark", "generate_reports", "export"]},
    {"name": "exam", "description": "Exam Management",
     "actions": ["schedule", "grade", "publish_results", "generate_reports"]},

    # Operations modules
    {"name": "fee", "description": "Fee Management",
     "actions": ["collect", "generate_invoices", "payment_manage", "discount_apply"]},
    {"name": "library", "description": "Library Management",
     "actions": ["issue_books", "return_books", "manage_inventory", "generate_reports"]},
    {"name": "transport", "description": "Transport Management",
     "actions": ["manage_routes", "assign_students", "track_vehicles", "manage_drivers"]},
    {"name": "idcard", "description": "ID Card Management",
     "actions": ["generate", "print", "bulk_generate", "design_templates"]},
    {"name": "hr", "description": "Human Resources",
     "actions": ["manage_payroll", "manage_leave", "performance_review", "recruitment"]},
]

# ── Roles ────────────────────────────────────────────────────────────────────

ROLES: list[dict] = [
    # ── SuperAdmin: the platform operator, every permission in every school ──
    {
        "id": "SuperAdmin",
        "name": "Super Administrator",
        "description": "Complete system access with all permissions",
        "grants": ["*"],
        "modules": ["*"],
    },
    # ── Admin: one school's administrator, wildcard over the academic and
    #    operations modules, a curated subset of user/school/report ──
    {
        "id": "Admin",
        "name": "School Administrator",
        "description": "School-level administration with most permissions",
        "grants": [
            "dashboard.*",
            "user.view", "user.create", "user.edit", "user.activate", "user.deactivate",
            "user.assign_role", "user.change_status", "user.reset_password",
            "school.configure", "school.manage_settings", "school.view_stats",
            "student.*", "teacher.*", "class.*", "subject.*", "attendance.*", "exam.*",
            "fee.*", "library.*", "transport.*", "hr.*", "idcard.*",
            "report.academic", "report.financial", "report.attendance", "report.performance",
            "report.export",
        ],
        "modules": [
            "dashboard", "user", "school", "student", "teacher", "class", "subject",
            "attendance", "exam", "fee", "library", "transport", "hr", "idcard", "report",
        ],
    },
    # ── Teacher: academic work on their classes ──
    {
        "id": "Teacher",
        "name": "Teacher",
        "description": "Teaching staff with student and academic management permissions",
        "grants": [
            "dashboard.access", "dashboard.view_stats",
            "student.view", "student.view_grades", "student.manage_attendance",
            "class.view", "class.schedule_manage",
            "subject.view", "subject.manage_curriculum",
            "attendance.view", "attendance.mark", "attendance.bulk_mark", "attendance.generate_reports",
            "exam.view", "exam.create", "exam.grade", "exam.generate_reports",
            "library.view", "library.issue_books", "library.return_books",
            "report.academic", "report.attendance", "report.performance",
        ],
        "modules": ["dashboard", "student", "class", "subject", "attendance", "exam", "library", "report"],
    },
    # ── Student: read-only, own records (enforced by ScopeResolver) ──
    {
        "id": "Student",
        "name": "Student",
        "description": "Student access to personal academic information",
        "grants": [
            "dashboard.access",
            "student.view", "student.view_grades",
            "attendance.view",
            "exam.view",
            "fee.view",
            "library.view",
            "transport.view",
        ],
        "modules": ["dashboard", "student", "attendance", "exam", "fee", "library", "transport"],
    },
    # ── Parent: read-only on their children, plus paying fees ──
    {
        "id": "Parent",
        "name": "Parent / Guardian",
        "description": "Parent access to children's academic information",
        "grants": [
            "dashboard.access",
            "student.view", "student.view_grades",
            "attendance.view",
            "exam.view",
            "fee.view", "fee.collect",
            "transport.view",
        ],
        "modules": ["dashboard", "student", "attendance", "exam", "fee", "transport"],
    },
    # ── HR: staff records and the HR module ──
    {
        "id": "HR",
        "name": "Human Resources",
        "description": "Human Resources management access",
        "grants": [
            "dashboard.access", "dashboard.view_stats",
            "user.view", "user.create", "user.edit",
            "teacher.view", "teacher.create", "teacher.edit", "teacher.view_performance",
            "hr.*",
            "report.performance", "report.export",
        ],
        "modules": ["dashboard", "user", "teacher", "hr", "report"],
    },
    # ── Accountant: fees and financial reporting ──
    {
        "id": "Accountant",
        "name": "Accountant",
        "description": "Financial management and fee collection access",
        "grants": [
            "dashboard.access", "dashboard.view_stats",
            "student.view",
            "fee.*",
            "report.financial", "report.export",
        ],
        "modules": ["dashboard", "student", "fee", "report"],
    },
]
