import enum


class AppRole(str, enum.Enum):
    ADMIN = "admin"
    DEVELOPER = "developer"
    EMPLOYEE = "employee"


class EmployeeType(str, enum.Enum):
    OFFICE = "office"
    FIELD = "field"


# Roles allowed into admin routes and privileged functions
PRIVILEGED_ROLES = (AppRole.ADMIN.value, AppRole.DEVELOPER.value)

PROFILES_TABLE = "profiles"
USER_ROLES_TABLE = "user_roles"
COMPANIES_TABLE = "companies"
SHIFTS_TABLE = "shifts"
LOCATIONS_TABLE = "locations"
