"""
Central Signal Registry for Event-Driven Architecture.

Uses blinker to let modules react to training events without importing
each other.

Usage:
    # Publisher (sender)
    from chesslab_app.core.signals import card_reviewed
    card_reviewed.send(current_app._get_current_object(), user_id=1, entry_id=2, ...)

    # Subscriber (receiver)
    @card_reviewed.connect
    def on_card_reviewed(sender, **kwargs):
        ...
"""
from blinker import Namespace

training_signals = Namespace()

# Fired after a review has been persisted.
# Payload: user_id, entry_id, response, phase, interval_days, next_review_date
card_reviewed = training_signals.signal('card_reviewed')

repertoire_signals = Namespace()

# Fired after a line was committed.
# Payload: user_id, repertoire_id, color, entries_created, plies
line_saved = repertoire_signals.signal('line_saved')

# Fired after an entry subtree (or an opening) was deleted.
# Payload: user_id, repertoire_id, entry_ids, positions_removed
entries_deleted = repertoire_signals.signal('entries_deleted')

user_signals = Namespace()

# Payload: user
user_registered = user_signals.signal('user_registered')
