"""Route Modules: one file per resource or concern, each with its own APIRouter."""
