from datetime import datetime, timezone

from pickem import db


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)

    # Team identification
    espn_id = db.Column(db.String(20), unique=True, index=True, nullable=False)
    abbreviation = db.Column(db.String(10), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    display_name = db.Column(db.String(150))
    location = db.Column(db.String(100))

    # Visual elements
    primary_color = db.Column(db.String(7))  # Hex color
    secondary_color = db.Column(db.String(7))  # Hex color
    logo_url = db.Column(db.String(500))

    # Timestamps
    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<Team {self.abbreviation}>"

    @staticmethod
    def upsert(team_data):
        """Create or update a team from a normalized provider payload"""
        espn_id = team_data.get("espn_id")
        if not espn_id:
            return None

        team = Team.query.filter_by(espn_id=espn_id).first()
        if not team:
            team = Team(espn_id=espn_id)
            db.session.add(team)

        team.abbreviation = team_data.get("abbreviation", "").upper()
        team.name = team_data.get("name") or team.abbreviation
        team.display_name = team_data.get("display_name")
        team.location = team_data.get("location")

        if team_data.get("color"):
            team.primary_color = f"#{team_data['color']}"
        if team_data.get("alternate_color"):
            team.secondary_color = f"#{team_data['alternate_color']}"
        if team_data.get("logo"):
            team.logo_url = team_data["logo"]

        return team
