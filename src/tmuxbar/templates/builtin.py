"""Templates shipped with tmuxbar. Ids are fixed so they stay stable."""

from tmuxbar.models import PaneLayout, SessionTemplate, WindowTemplate

DEVELOPMENT = SessionTemplate(
    id="builtin-development",
    name="Development",
    description="Editor + Terminal + Git status",
    icon="hammer",
    windows=(
        WindowTemplate("editor", PaneLayout.SINGLE, ("nvim .",)),
        WindowTemplate("terminal", PaneLayout.HORIZONTAL_SPLIT, ("", "git status")),
    ),
    built_in=True,
)

WEB_DEVELOPMENT = SessionTemplate(
    id="builtin-web-development",
    name="Web Development",
    description="Server + Client + Logs",
    icon="globe",
    windows=(
        WindowTemplate("server", PaneLayout.SINGLE, ("npm run dev",)),
        WindowTemplate("client", PaneLayout.SINGLE, ("npm run client",)),
        WindowTemplate(
            "logs", PaneLayout.VERTICAL_SPLIT, ("tail -f logs/app.log", "tail -f logs/error.log")
        ),
    ),
    built_in=True,
)

MONITORING = SessionTemplate(
    id="builtin-monitoring",
    name="System Monitoring",
    description="htop + logs + network",
    icon="chart",
    windows=(
        WindowTemplate(
            "monitor",
            PaneLayout.FOUR_PANE,
            ("htop", "watch -n 1 df -h", "tail -f /var/log/system.log", "netstat -an | head -20"),
        ),
    ),
    built_in=True,
)

SSH = SessionTemplate(
    id="builtin-ssh",
    name="SSH Session",
    description="Multi-server management",
    icon="network",
    windows=(
        WindowTemplate("server1"),
        WindowTemplate("server2"),
        WindowTemplate("local"),
    ),
    built_in=True,
)

DOCKER = SessionTemplate(
    id="builtin-docker",
    name="Docker Management",
    description="Containers + Logs + Shell",
    icon="shippingbox",
    windows=(
        WindowTemplate("containers", PaneLayout.SINGLE, ("docker ps -a",)),
        WindowTemplate("logs", PaneLayout.SINGLE, ("docker-compose logs -f",)),
        WindowTemplate("shell"),
    ),
    built_in=True,
)

BUILTIN_TEMPLATES: tuple[SessionTemplate, ...] = (
    DEVELOPMENT,
    WEB_DEVELOPMENT,
    MONITORING,
    SSH,
    DOCKER,
)
