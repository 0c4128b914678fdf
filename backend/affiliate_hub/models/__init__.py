"""Import every model so relationship() targets resolve on first use."""

from affiliate_hub.models.user import User  # noqa: F401
from affiliate_hub.models.scrape_job import ScrapeJob  # noqa: F401
from affiliate_hub.models.program_template import ProgramTemplate  # noqa: F401
from affiliate_hub.models.scraped_program import ScrapedProgram  # noqa: F401
from affiliate_hub.models.user_program_selection import UserProgramSelection  # noqa: F401
