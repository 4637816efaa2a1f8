MAIN_MENU = """Reply with:
• DELAY - Report a delayed journey
• STATUS - Check your claim status
• HELP - Get help"""

WELCOME_FIRST_TIME = """Welcome to RailRepay! 🚂

I help you claim compensation for delayed trains automatically.

To get started, I need to verify your phone number. Reply YES to receive a verification code, or TERMS to read our terms of service first."""

WELCOME_BACK = f"""Welcome back! 👋

What would you like to do today?

{MAIN_MENU}"""

WELCOME_BACK_UNVERIFIED = """Welcome back! You haven't completed verification yet.

To continue, I need to verify your phone number. Reply YES to receive a verification code, or TERMS to read our terms of service first."""

JOURNEY_WHEN = """When did you travel?

You can say:
• "today"
• "yesterday"
• "15 Nov"
• "15/11/2024"

(Claims must be made within {max_age_days} days of travel)"""

JOURNEY_STATIONS = """Which stations did you travel between?

For example:
• "Kings Cross to Edinburgh"
• "Manchester to London"
• "Brighton to Victoria\""""

JOURNEY_TIME = """What time did your train depart?

You can say:
• "14:30"
• "2:30pm"
• "1430"
• "2pm\""""

TICKET_REQUEST = """Now please send a photo of your ticket.

You can:
• Take a photo of your physical ticket
• Screenshot your e-ticket
• Upload your ticket PDF

Or reply SKIP to continue without one."""

ERROR_RECOVERY = """Sorry, something went wrong with your claim. We've passed it to our support team, who will review your case within 24 hours.

In the meantime, reply DELAY to start a new claim or STATUS to check an existing one."""

ESCALATION = """I'm unable to find a matching route from the available options. Let me escalate this to our support team for manual verification.

We'll be in touch within 24 hours."""
