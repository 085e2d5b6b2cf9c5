from pathlib import Path
from typing import List, Dict, Any
from jinja2 import Template
from datetime import datetime

from state import GameState


class ReportGenerator:
    """Generates an HTML chronicle of a reign."""

    def __init__(self, config):
        self.config = config
        self.template = self._get_template()

    def outcome(self, state: GameState) -> str:
        if state.victory:
            return f"Victory ({state.victory_type})"
        if state.game_over:
            return f"Defeat ({state.game_over_reason})"
        return "Reign in progress"

    def generate_report(self, history: List[Dict[str, Any]], state: GameState, output_dir: Path):
        """Generate the chronicle page next to any plots in output_dir."""
        output_dir = Path(output_dir)

        # The event log is stored newest first
        events = [{"day": e.day, "time": e.time, "type": e.type, "message": e.message}
                  for e in reversed(state.event_log)]

        nations = [{
            "name": n.name,
            "personality": n.personality,
            "relation": n.relation_with_player,
            "military_power": n.military_power,
            "treaties": ", ".join(t.type for t in n.treaties) or "-",
            "status": "Conquered" if n.is_defeated else ("At war" if n.is_at_war else "At peace"),
        } for n in state.ai_nations]

        images = [name for name in ("timeline_analysis.png", "rivals.png")
                  if (output_dir / name).exists()]

        html_content = self.template.render(
            simulation_name="Realm Chronicle",
            timestamp=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            days=int(state.day),
            outcome=self.outcome(state),
            final=history[-1] if history else {},
            resources=state.resources,
            population=state.population,
            nations=nations,
            events=events,
            images=images,
            prestige=state.permanent.points,
        )

        report_path = output_dir / "index.html"
        with open(report_path, "w") as f:
            f.write(html_content)

        return report_path

    def _get_template(self) -> Template:
        """Return Jinja2 template for the report."""
        return Template("""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ simulation_name }} - Report</title>
    <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.0/dist/css/bootstrap.min.css" rel="stylesheet">
    <style>
        body { background-color: #f8f9fa; }
        .card { margin-bottom: 20px; box-shadow: 0 4px 6px rgba(0,0,0,0.1); }
        .event-log { max-height: 500px; overflow-y: auto; font-family: monospace; font-size: 0.9em; }
        .stat-card { text-align: center; padding: 20px; }
        .stat-value { font-size: 2em; font-weight: bold; color: #0d6efd; }
        .stat-label { color: #6c757d; text-transform: uppercase; font-size: 0.8em; }
        img { max-width: 100%; height: auto; border-radius: 5px; }
    </style>
</head>
<body>
    <nav class="navbar navbar-dark bg-dark">
        <div class="container-fluid">
            <span class="navbar-brand mb-0 h1">{{ simulation_name }}</span>
            <span class="navbar-text">{{ timestamp }}</span>
        </div>
    </nav>

    <div class="container mt-4">
        <div class="row mb-4">
            <div class="col-md-3">
                <div class="card stat-card">
                    <div class="stat-value">{{ days }}</div>
                    <div class="stat-label">Days Reigned</div>
                </div>
            </div>
            <div class="col-md-3">
                <div class="card stat-card">
                    <div class="stat-value">{{ outcome }}</div>
                    <div class="stat-label">Outcome</div>
                </div>
            </div>
            <div class="col-md-3">
                <div class="card stat-card">
                    <div class="stat-value">{{ "%.0f"|format(resources.gold) }}</div>
                    <div class="stat-label">Gold</div>
                </div>
            </div>
            <div class="col-md-3">
                <div class="card stat-card">
                    <div class="stat-value">{{ population.total }}</div>
                    <div class="stat-label">Population</div>
                </div>
            </div>
        </div>

        <div class="row">
            <div class="col-md-8">
                {% for image in images %}
                <div class="card">
                    <div class="card-body text-center">
                        <img src="{{ image }}" alt="{{ image }}">
                    </div>
                </div>
                {% endfor %}

                <div class="card">
                    <div class="card-header fw-bold">Rival Nations</div>
                    <div class="card-body">
                        <table class="table table-sm">
                            <thead><tr><th>Nation</th><th>Personality</th><th>Relation</th><th>Military</th><th>Treaties</th><th>Status</th></tr></thead>
                            <tbody>
                            {% for n in nations %}
                            <tr>
                                <td>{{ n.name }}</td>
                                <td>{{ n.personality }}</td>
                                <td>{{ "%.0f"|format(n.relation) }}</td>
                                <td>{{ "%.0f"|format(n.military_power) }}</td>
                                <td>{{ n.treaties }}</td>
                                <td>{{ n.status }}</td>
                            </tr>
                            {% endfor %}
                            </tbody>
                        </table>
                        <div class="text-muted small">Prestige banked: {{ prestige }}</div>
                    </div>
                </div>
            </div>

            <div class="col-md-4">
                <div class="card">
                    <div class="card-header fw-bold">Chronicle</div>
                    <div class="card-body event-log">
                        <input type="text" id="eventSearch" class="form-control mb-2" placeholder="Search events...">
                        <div id="eventList">
                            {% for event in events|reverse %}
                            <div class="event-item border-bottom py-1">
                                <span class="badge bg-secondary">Day {{ event.day }} {{ event.time }}</span>
                                {{ event.message }}
                            </div>
                            {% endfor %}
                        </div>
                    </div>
                </div>
            </div>
        </div>
    </div>

    <script>
        document.getElementById('eventSearch').addEventListener('keyup', function() {
            let filter = this.value.toLowerCase();
            let items = document.querySelectorAll('.event-item');
            items.forEach(function(item) {
                let text = item.textContent.toLowerCase();
                item.style.display = text.includes(filter) ? '' : 'none';
            });
        });
    </script>
</body>
</html>
        """)
