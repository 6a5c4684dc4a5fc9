# xmitreader

Extract the members of a partitioned dataset (PDS or PDSE) from a z/OS
TSO `TRANSMIT` (XMIT) file. Each member is converted from EBCDIC to text.

An XMIT file wraps an IEBCOPY unload of the dataset. `xmitreader` reads the
XMIT control records (INMR01, INMR02, up to INMR06), rebuilds the IEBCOPY
unload stream from the data segments, reads its directory and data records,
and writes one text file per member into a target directory.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

## Command line

```
xmitreader -input SOURCE.XMIT -target outdir -type cbl
```

Every option can also be written with two dashes (`--input`, `--target`, ...).

| Option      | Meaning                                                                     |
|-------------|-----------------------------------------------------------------------------|
| `-input`    | XMIT file to process (required)                                             |
| `-target`   | Existing output directory (required)                                        |
| `-type`     | Extension given to every member file (required)                             |
| `-unload`   | Keep the rebuilt IEBCOPY unload stream in this file; otherwise a temporary file is used and deleted afterwards |
| `-encoding` | EBCDIC code page of the dataset contents, default `IBM-1047`               |
| `-debug`    | Debug logging, including hex dumps of directory and data blocks             |
| `-trace`    | Debug logging with the module, function and line of each message            |

Each member `NAME` is written as `outdir/NAME.<type>` (blanks stripped from
the name), UTF-8 encoded, one line per fixed-length record.

The code page can be `IBM-1047` or any EBCDIC code page Python knows, given
as e.g. `IBM-037`, `IBM-500`, `CP1140` or a Python codec name.

Exit status:

* `0` – success
* `2` – the members were written but the temporary unload file could not be removed
* `4` – the target directory does not exist
* `8` – the input could not be read or processed
* `16` – a required option is missing (the usage text is printed)

## Library use

```python
from xmitreader.xmit import process_xmit_file
from xmitreader.unload import process_unload_file

with open("SOURCE.XMIT", "rb") as src, open("source.unload", "w+b") as unload:
    params = process_xmit_file(src, unload, "IBM-1047")
    unload.seek(0)
    count = process_unload_file(unload, "outdir", "txt", params.xmit_files[0], "IBM-1047")
print(f"{count} members extracted")
```

`process_xmit_file` returns an `XmitParams` (origin node, user, timestamp,
number of files and a list of `XmitFileParams` with DSNAME, DSORG, RECFM,
LRECL, BLKSIZE and so on). It raises `XmitFormatError` when the input is not
a well-formed XMIT file. `process_unload_file` raises `UnloadError` on
truncated or malformed unload data.

Lower-level pieces:

* `xmitreader.records` – `read_record`, `XmitRecord`, `RecordFlags`
* `xmitreader.textunits` – `parse_text_unit`, `parse_text_units`, `TextUnit`, `TextUnitId`
* `xmitreader.unload_records` – `parse_copyr1`, `parse_copyr2`, `Copyr1`, `Copyr2`, `Extension`, `MemberEntry`
* `xmitreader.unload` – `read_dir_blocks`, `process_dir_blocks`, `process_data_records`, `find_relative_track`
* `xmitreader.extract` – `generate_files`, `write_member`
* `xmitreader.utils` – `decode_ebcdic`, `hexdump`, `get_variable_length_int`, `recfm_hw_to_string`, `recfm_byte_to_string`

## Limitations

* Only fixed-length records are written out; a member of a dataset with
  variable-length records (RECFM starting with `V`) stops processing with an error.
* Only partitioned datasets sent as an IEBCOPY unload are expanded;
  transmissions of sequential datasets are not handled.
* Only the first dataset described in the XMIT file is used.