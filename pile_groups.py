import logging
import uuid

from pile_calculations import metrics_for_group

logger = logging.getLogger(__name__)

GROUP_FIELDS = (
    'group_name',
    'pile_count',
    'outer_diameter',
    'wall_thickness',
    'pile_length',
    'paint_length',
)


def new_group_id():
    return uuid.uuid4().hex


def _clean_fields(fields):
    # Only the known group fields are stored; count is rounded to the
    # nearest whole pile (ties to even), so 2.7 -> 3
    data = {k: fields[k] for k in GROUP_FIELDS}
    data['group_name'] = str(data['group_name'])
    data['pile_count'] = int(round(float(data['pile_count'])))
    for k in ('outer_diameter', 'wall_thickness', 'pile_length', 'paint_length'):
        data[k] = float(data[k])
    return data


class PileGroupStore:
    """
    Ordered in-memory collection of pile groups.
    Records are plain dicts keyed by GROUP_FIELDS plus 'id'.
    Observers registered with subscribe() are called as callback(event, group)
    after every change.
    """

    def __init__(self, records=None):
        self._groups = []
        self._listeners = []
        if records:
            self.load_records(records)

    def __len__(self):
        return len(self._groups)

    def __iter__(self):
        return iter(self.groups)

    def __contains__(self, group_id):
        return self._index(group_id) is not None

    @property
    def groups(self):
        return [dict(g) for g in self._groups]

    def _index(self, group_id):
        for i, g in enumerate(self._groups):
            if g['id'] == group_id:
                return i
        return None

    def _notify(self, event, group):
        for callback in list(self._listeners):
            callback(event, dict(group) if group is not None else None)

    def subscribe(self, callback):
        """Register an observer; returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    # --- CRUD ---
    def add(self, group):
        record = _clean_fields(group)
        record['id'] = new_group_id()
        self._groups.append(record)
        logger.debug("Added pile group %s (%s)", record['id'], record['group_name'])
        self._notify('added', record)
        return record['id']

    def get(self, group_id):
        idx = self._index(group_id)
        if idx is None:
            return None
        return dict(self._groups[idx])

    def update(self, group_id, fields):
        idx = self._index(group_id)
        if idx is None:
            logger.warning("Update ignored, no pile group with id %s", group_id)
            return False
        record = _clean_fields(fields)
        record['id'] = group_id
        self._groups[idx] = record
        logger.debug("Updated pile group %s", group_id)
        self._notify('updated', record)
        return True

    def remove(self, group_id):
        idx = self._index(group_id)
        if idx is None:
            logger.warning("Remove ignored, no pile group with id %s", group_id)
            return False
        record = self._groups.pop(idx)
        logger.debug("Removed pile group %s", group_id)
        self._notify('removed', record)
        return True

    def clear(self):
        self._groups = []
        self._notify('cleared', None)

    # --- Queries ---
    def summary(self):
        """Each group merged with its calculated metrics, in insertion order."""
        return [{**g, **metrics_for_group(g)} for g in self._groups]

    def totals(self):
        total_weight = 0
        total_paint_area = 0
        for g in self._groups:
            calc = metrics_for_group(g)
            total_weight += calc['total_weight']
            total_paint_area += calc['total_paint_area']
        return {'total_weight': total_weight, 'total_paint_area': total_paint_area}

    # --- Serialization ---
    def to_records(self):
        return self.groups

    def load_records(self, records):
        """Replace all groups. Ids are kept when present, generated otherwise."""
        loaded = []
        for r in records:
            record = _clean_fields(r)
            record['id'] = str(r.get('id') or new_group_id())
            loaded.append(record)
        self._groups = loaded
        logger.debug("Loaded %d pile groups", len(loaded))
        self._notify('loaded', None)
