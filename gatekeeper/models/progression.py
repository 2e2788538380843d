"""
Progression models - relational storage for realm progression

One Progression row per user holds the order of the realm currently
being attempted (10 down to 1, 0 once Asgard is solved). RealmSolve rows
record each solved realm with its timestamp.
"""
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc)


def create_progression_models(db):
    """Factory function to create Progression and RealmSolve models"""

    class Progression(db.Model):
        __tablename__ = 'progressions'

        user_id = db.Column(db.String(128), primary_key=True)
        current_order = db.Column(db.Integer, nullable=False)
        created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
        updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
        completed_at = db.Column(db.DateTime, nullable=True)

        solves = db.relationship(
            'RealmSolve',
            backref='progression',
            order_by='RealmSolve.id',
            lazy='select',
            cascade='all, delete-orphan'
        )

        def __repr__(self):
            return f'<Progression user={self.user_id} current_order={self.current_order}>'

    class RealmSolve(db.Model):
        __tablename__ = 'realm_solves'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        user_id = db.Column(db.String(128), db.ForeignKey('progressions.user_id'), nullable=False, index=True)
        realm = db.Column(db.String(50), nullable=False)
        solved_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

        __table_args__ = (
            db.UniqueConstraint('user_id', 'realm', name='uq_realm_solves_user_realm'),
        )

        def __repr__(self):
            return f'<RealmSolve user={self.user_id} realm={self.realm}>'

    return Progression, RealmSolve
