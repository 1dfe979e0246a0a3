"""ISO base media file format (MP4) atom writer."""