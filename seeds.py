"""Pre-labelled mock feedback for demos and local testing.

Each entry carries its own classification so seeding never calls a model.
"""

MOCK_FEEDBACK: list[dict] = [
    {
        "source": "email",
        "title": "Dark mode request",
        "content": "Can we add dark mode to the app? It would be great for night usage.",
        "theme": "UI & Accessibility",
        "sentiment": "neutral",
        "urgency": "low",
        "tags": ["ui", "accessibility", "feature-request"],
    },
    {
        "source": "slack",
        "title": "Login broken on mobile",
        "content": "The login button is not working on mobile devices. Users are unable to access their accounts.",
        "theme": "Auth & Login",
        "sentiment": "negative",
        "urgency": "high",
        "tags": ["bug", "mobile", "auth"],
    },
    {
        "source": "support",
        "title": "Dashboard slow",
        "content": "The dashboard is loading very slowly. It takes over 10 seconds to load.",
        "theme": "Performance",
        "sentiment": "negative",
        "urgency": "high",
        "tags": ["performance", "dashboard"],
    },
    {
        "source": "email",
        "title": "Great update!",
        "content": "Love the new update! The UI improvements are fantastic.",
        "theme": "General Feedback",
        "sentiment": "positive",
        "urgency": "low",
        "tags": ["praise", "ui"],
    },
    {
        "source": "slack",
        "title": "Salesforce integration",
        "content": "We need to integrate with Salesforce. This is critical for our sales team.",
        "theme": "Integrations",
        "sentiment": "neutral",
        "urgency": "high",
        "tags": ["integration", "salesforce"],
    },
    {
        "source": "support",
        "title": "Password reset email never arrives",
        "content": "I cannot reset my password. The reset email never arrives.",
        "theme": "Auth & Login",
        "sentiment": "negative",
        "urgency": "high",
        "tags": ["auth", "email", "bug"],
    },
    {
        "source": "email",
        "title": "Navigation is confusing",
        "content": "The navigation menu could be more intuitive. Consider adding breadcrumbs.",
        "theme": "UI & Navigation",
        "sentiment": "negative",
        "urgency": "medium",
        "tags": ["ui", "navigation"],
    },
    {
        "source": "slack",
        "title": "CSV export needed",
        "content": "We need the ability to export reports in CSV format.",
        "theme": "Reporting",
        "sentiment": "neutral",
        "urgency": "medium",
        "tags": ["export", "reporting", "csv"],
    },
    {
        "source": "support",
        "title": "Security concern in auth",
        "content": "I noticed a potential security vulnerability in the API authentication.",
        "theme": "Security",
        "sentiment": "negative",
        "urgency": "high",
        "tags": ["security", "api", "auth"],
    },
    {
        "source": "email",
        "title": "Mobile app availability",
        "content": "When will the mobile app be available? This is highly requested by our users.",
        "theme": "Mobile",
        "sentiment": "neutral",
        "urgency": "medium",
        "tags": ["mobile", "roadmap"],
    },
    {
        "source": "slack",
        "title": "Notification settings",
        "content": "Users want more granular control over notification preferences.",
        "theme": "Notifications",
        "sentiment": "neutral",
        "urgency": "low",
        "tags": ["notifications", "settings"],
    },
    {
        "source": "support",
        "title": "Double charged",
        "content": "My payment was charged twice. Please refund the duplicate charge.",
        "theme": "Billing",
        "sentiment": "negative",
        "urgency": "high",
        "tags": ["billing", "payments", "bug"],
    },
    {
        "source": "email",
        "title": "Docs outdated",
        "content": "The API documentation needs to be updated with the latest endpoints.",
        "theme": "Docs & Onboarding",
        "sentiment": "negative",
        "urgency": "medium",
        "tags": ["docs", "api", "developer-experience"],
    },
    {
        "source": "slack",
        "title": "Search irrelevant",
        "content": "The search functionality is not returning relevant results.",
        "theme": "Search",
        "sentiment": "negative",
        "urgency": "medium",
        "tags": ["search", "relevance"],
    },
    {
        "source": "support",
        "title": "Need admin access",
        "content": "I need admin access to manage team members.",
        "theme": "Admin & RBAC",
        "sentiment": "neutral",
        "urgency": "medium",
        "tags": ["rbac", "admin"],
    },
    {
        "source": "email",
        "title": "Analytics dashboard is excellent",
        "content": "The new analytics dashboard is excellent! Great work team.",
        "theme": "Analytics",
        "sentiment": "positive",
        "urgency": "low",
        "tags": ["analytics", "praise"],
    },
    {
        "source": "slack",
        "title": "Zapier webhooks not firing",
        "content": "The Zapier integration is broken. Webhooks are not firing.",
        "theme": "Integrations",
        "sentiment": "negative",
        "urgency": "high",
        "tags": ["zapier", "webhooks", "bug"],
    },
    {
        "source": "support",
        "title": "Pricing tiers confusing",
        "content": "Can you explain the pricing tiers? I am confused about the differences.",
        "theme": "Billing",
        "sentiment": "negative",
        "urgency": "medium",
        "tags": ["billing", "pricing", "docs"],
    },
    {
        "source": "email",
        "title": "Screen reader support",
        "content": "The app needs better screen reader support for accessibility compliance.",
        "theme": "UI & Accessibility",
        "sentiment": "negative",
        "urgency": "medium",
        "tags": ["accessibility", "a11y"],
    },
    {
        "source": "slack",
        "title": "iOS crashes frequently",
        "content": "The app crashes frequently on iOS devices. This is urgent.",
        "theme": "Mobile",
        "sentiment": "negative",
        "urgency": "high",
        "tags": ["ios", "crash", "bug"],
    },
]
