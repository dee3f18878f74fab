"""
================================================================================
DEFAULT VALUES CONSTANTS
================================================================================
This file contains all default values for command-line arguments and file patterns.
This is the single source of truth for application defaults.
================================================================================
"""

# =============================================================================
# DEFAULT ARGUMENT VALUES
# =============================================================================
DEFAULT_MAX_FILE_SIZE = 100 * 1024  # Maximum file size in bytes (100KB)
DEFAULT_LANGUAGE = "english"        # Default tutorial language
DEFAULT_MAX_ABSTRACTIONS = 10       # Prompt-level target, not enforced
DEFAULT_GITHUB_RATE_LIMIT_RETRIES = 3

# =============================================================================
# GENERATED CONTENT
# =============================================================================
ATTRIBUTION_FOOTER = (
    "---\n\nGenerated by [AI Codebase Knowledge Builder]"
    "(https://github.com/The-Pocket/Tutorial-Codebase-Knowledge)"
)
MERMAID_MAX_LABEL_LENGTH = 30
COVERAGE_REPAIR_LABEL = "Related to"

# =============================================================================
# FILE PATTERNS (fnmatch syntax, matched against relative path and basename)
# =============================================================================
DEFAULT_INCLUDE_PATTERNS = {
    "*.py", "*.js", "*.jsx", "*.ts", "*.tsx", "*.go", "*.java", "*.pyi", "*.pyx",
    "*.c", "*.cs", "*.cc", "*.cpp", "*.h", "*.hpp", "*.md", "*.rst", "Dockerfile*",
    "Makefile", "*.yaml", "*.yml", "*.json", "*.sh", "*.bash", "docker-compose*",
    "requirements.txt", "pyproject.toml", "package.json", "go.mod", "pom.xml",
    "build.gradle", "Cargo.toml", "README*", "*.tf", "*.sql", "*.rb", "*.php",
    "*.html", "*.css", "*.scss", "*.vue",
}

DEFAULT_EXCLUDE_PATTERNS = {
    "assets/*", "data/*", "images/*", "public/*", "static/*", "temp/*",
    "*docs/*",
    "*venv/*",
    "*.venv/*",
    "*test*",
    "*tests/*",
    "*examples/*",
    "*samples/*",
    "v1/*",
    "*vendor/*",
    "*dist/*",
    "*build/*",
    "*experimental/*",
    "*deprecated/*",
    "*misc/*",
    "*legacy/*",
    "*migrations/*",
    "*coverage/*",
    "*target/*",
    ".git/*", ".github/*", ".next/*", ".vscode/*", ".idea/*",
    "*__pycache__/*",
    "*obj/*",
    "*bin/*",
    "*node_modules/*",
    "*.min.*",
    "*.lock", "package-lock.json", "go.sum",
    "*.env", ".env*",
    "*.log", "*.tmp", "*.bak", "*.pyc",
}
