#!/usr/bin/env python
# Licensed under the Apache License, Version 2.0 (the "License"); you may not
# use this file except in compliance with the License. You may obtain a copy of
# the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations under
# the License.


import logging
import optparse as op
import sys

from couchdesign import codec
from couchdesign.design import DesignDocument, iter_files
from couchdesign.env import CONFIG
from couchdesign.errors import DescriptorError
from couchdesign.index import IndexDefinition


USAGE = "%prog [OPTIONS] PATH1 [PATH2 ...]"
FORMATS = ("summary", "json")

log = logging.getLogger("couchdesign")


def descriptor_from_json(obj):
    if isinstance(obj, dict) and "_id" in obj:
        return DesignDocument.from_json(obj)
    if isinstance(obj, dict) and ("def" in obj or "index" in obj):
        return IndexDefinition.from_json(obj)
    raise DescriptorError("Neither a design document nor an index definition")


def load_file(fname):
    with open(fname, "rb") as f:
        return descriptor_from_json(codec.loads(f.read()))


def load_descriptors(path_list):
    seen = set()
    for root in path_list:
        for fname in iter_files(root):
            if fname in seen:
                continue
            seen.add(fname)
            try:
                yield fname, load_file(fname), None
            except (DescriptorError, OSError) as e:
                log.debug("Failed to load %s", fname, exc_info=True)
                yield fname, None, e


def summarize(desc):
    if isinstance(desc, IndexDefinition):
        fields = ", ".join(str(f) for f in desc.fields or []) or "*"
        return "index %s/%s (%s) [%s]" % (desc.ddoc, desc.name, desc.type,
                fields)
    parts = []
    for attr in ("views", "indexes", "filters", "shows", "lists", "updates",
            "fulltext"):
        value = getattr(desc, attr)
        if value:
            parts.append("%d %s" % (len(value), attr))
    if desc.rewrites:
        parts.append("%d rewrites" % len(desc.rewrites))
    return "design %s (%s)" % (desc.id, ", ".join(parts) or "empty")


def render(desc, opts):
    if opts.format == "summary":
        return summarize(desc)
    if opts.create and isinstance(desc, IndexDefinition):
        obj = desc.to_create_payload()
    else:
        obj = desc.to_json()
    return codec.dumps(obj, indent=opts.indent, sort_keys=opts.sort_keys)


def options():
    return [
        op.make_option(
            '-f', '--format',
            type='choice', choices=FORMATS, default='summary',
            help='Output format, one of: %s.' % ', '.join(FORMATS)
        ),
        op.make_option(
            '-c', '--create',
            action='store_true', default=False,
            help='Print index definitions as index creation payloads.'
        ),
        op.make_option(
            '-i', '--indent',
            type='int', default=None, metavar='N',
            help='Indent JSON output by N spaces.'
        ),
        op.make_option(
            '-s', '--sort-keys',
            action='store_true', default=False,
            help='Sort the keys of JSON output.'
        ),
        op.make_option(
            '-v', '--verbose',
            action='store_true', default=False,
            help='Log debug messages.'
        )
    ]


def main(argv=None, out=None):
    parser = op.OptionParser(usage=USAGE, option_list=options())
    opts, args = parser.parse_args(argv)
    if out is None:
        out = sys.stdout

    if opts.verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, CONFIG.log_level, logging.WARNING)
    logging.basicConfig(level=level,
            format="%(asctime)s %(name)s %(levelname)s %(message)s")

    if not len(args) and CONFIG.design_dir:
        args = [CONFIG.design_dir]
    if not len(args):
        parser.error("No descriptor paths specified.")

    failed = 0
    for fname, desc, err in load_descriptors(args):
        if err is not None:
            failed += 1
            out.write("%s: ERROR %s\n" % (fname, err))
            continue
        if opts.format == "summary":
            out.write("%s: %s\n" % (fname, render(desc, opts)))
        else:
            out.write(render(desc, opts) + "\n")
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
