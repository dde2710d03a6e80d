"""A segmented, string-keyed concurrent map built from pairs, buckets and segments."""