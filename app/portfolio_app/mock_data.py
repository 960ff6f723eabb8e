from __future__ import annotations

from portfolio_app.core.models import Project
from portfolio_app.core.util import parse_timestamp


def initial_projects() -> list[Project]:
    return [
        Project(
            id="p1",
            title="MERN Stack E-Commerce",
            description="A full-featured shopping platform with user authentication and payment integration.",
            technologies=("MongoDB", "Express", "React", "Node.js", "Stripe"),
            live_url="https://example-ecommerce.com",
            github_url="https://github.com/example/ecommerce",
            created_at=parse_timestamp("2024-01-15"),
        ),
        Project(
            id="p2",
            title="Real-Time Chat App",
            description="Built with Socket.io for instant messaging, demonstrating excellent WebSocket handling.",
            technologies=("Node.js", "Socket.io", "React", "Tailwind"),
            live_url="https://example-chat.com",
            github_url="https://github.com/example/chat-app",
            created_at=parse_timestamp("2024-02-20"),
        ),
        Project(
            id="p3",
            title="Data Visualization Dashboard",
            description="Interactive dashboard using D3.js and TypeScript to display complex data sets.",
            technologies=("TypeScript", "D3.js", "React"),
            live_url="https://example-dashboard.com",
            github_url="https://github.com/example/dashboard",
            created_at=parse_timestamp("2024-03-10"),
        ),
    ]
